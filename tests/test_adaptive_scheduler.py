from __future__ import annotations

from datetime import timedelta

import pytest

from wordprogress.models.enums import ProficiencyLevel, StrategyType
from wordprogress.services.adaptive_scheduler import FsrsAlgorithm, Rating, rating_for_level
from wordprogress.services.scheduling_engine import SchedulingEngine
from wordprogress.utils.time_utils import parse_instant
from tests.utils import NOW, make_progress, make_strategy


@pytest.fixture()
def fsrs():
    return FsrsAlgorithm(desired_retention=0.9, maximum_interval_days=36500, minimum_interval_minutes=10)


def test_level_to_rating():
    assert rating_for_level(ProficiencyLevel.L0) is Rating.AGAIN
    assert rating_for_level(ProficiencyLevel.L1) is Rating.HARD
    assert rating_for_level(ProficiencyLevel.L2) is Rating.GOOD
    assert rating_for_level(ProficiencyLevel.L3) is Rating.EASY
    assert rating_for_level(ProficiencyLevel.L4) is Rating.EASY


def test_new_card_review(fsrs):
    outcome = fsrs.next_review(None, ProficiencyLevel.L2, NOW)

    assert outcome.next_review_date >= NOW + timedelta(minutes=10)
    config = outcome.config
    assert config["reps"] == 1
    assert config["lapses"] == 0
    assert config["stability"] > 0
    assert 1.0 <= config["difficulty"] <= 10.0
    assert parse_instant(config["last_review"]) == NOW
    assert parse_instant(config["due"]) == outcome.next_review_date
    assert outcome.review_log["rating"] == int(Rating.GOOD)
    assert outcome.review_log["start_state"] == "new"


def test_better_levels_wait_longer(fsrs):
    again = fsrs.next_review(None, ProficiencyLevel.L0, NOW).next_review_date
    easy = fsrs.next_review(None, ProficiencyLevel.L3, NOW).next_review_date
    assert again < easy


def test_reviews_are_deterministic(fsrs):
    first = fsrs.next_review(None, ProficiencyLevel.L2, NOW)
    second = fsrs.next_review(None, ProficiencyLevel.L2, NOW)
    assert first == second


def test_state_carries_over_between_reviews(fsrs):
    first = fsrs.next_review(None, ProficiencyLevel.L3, NOW)
    later = first.next_review_date
    second = fsrs.next_review(first.config, ProficiencyLevel.L3, later)

    assert second.config["reps"] == 2
    assert second.config["stability"] > first.config["stability"]
    assert second.next_review_date > later


def test_forgetting_a_review_card_counts_a_lapse(fsrs):
    first = fsrs.next_review(None, ProficiencyLevel.L3, NOW)
    assert first.config["state"] == "review"

    lapse = fsrs.next_review(first.config, ProficiencyLevel.L0, first.next_review_date)
    assert lapse.config["lapses"] == 1


def test_maximum_interval_is_enforced():
    capped = FsrsAlgorithm(maximum_interval_days=2)
    outcome = capped.next_review(None, ProficiencyLevel.L4, NOW)
    assert outcome.next_review_date <= NOW + timedelta(days=2)


def test_preview_lists_every_rating(fsrs):
    options = fsrs.preview(None, NOW)

    assert [option.rating for option in options] == [1, 2, 3, 4]
    dates = [option.next_review_date for option in options]
    assert dates == sorted(dates)
    assert all(option.scheduled_days >= 1 for option in options)


def test_engine_with_fsrs(fsrs):
    strategy = make_strategy(id="strategy_fsrs", strategy_type=StrategyType.ADAPTIVE, interval_rule=None)
    decision = SchedulingEngine(fsrs).schedule(make_progress(), ProficiencyLevel.L1, strategy, NOW)

    assert decision.progress.next_review_date >= NOW
    assert decision.progress.review_config["reps"] == 1
    assert decision.log_entry.review_config == decision.progress.review_config
