"""Models describing how reviews are spaced."""

from .review_strategy_model import ReviewStrategy

__all__ = ["ReviewStrategy"]
