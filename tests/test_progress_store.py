from __future__ import annotations

from datetime import date, timedelta

import pytest

from wordprogress.core.exceptions import NotFound, PersistenceConflict
from wordprogress.models.enums import ActionType, AssessmentPhase, ProficiencyLevel, StrategyType
from wordprogress.services.history_service import HistoryService
from wordprogress.services.scheduling_engine import SchedulingEngine
from tests.utils import NOW, make_strategy


def test_register_word_is_idempotent(store):
    first = store.register_word("u1", "apple")
    again = store.register_word("u1", "apple")

    assert first.id == again.id
    assert again.proficiency_level is ProficiencyLevel.L0
    assert again.next_review_date is None
    assert again.version == 0


def test_register_word_updates_the_flag(store):
    store.register_word("u1", "apple")
    updated = store.register_word("u1", "apple", is_long_difficult=True)
    assert updated.is_long_difficult


def test_missing_progress_raises_not_found(store):
    assert store.get_progress("u1", "ghost") is None
    with pytest.raises(NotFound) as exc:
        store.require_progress("u1", "ghost")
    assert exc.value.code == "progress_not_found"
    assert exc.value.status_code == 404


def test_seed_strategies_skips_existing_rows(seeded_store):
    assert seeded_store.seed_strategies([{"id": "strategy_dense", "strategy_type": 1, "strategy_name": "x", "applicable_condition": "any"}]) == 0
    assert [s.id for s in seeded_store.list_strategies(strategy_type=StrategyType.ADAPTIVE)] == ["strategy_fsrs"]
    assert len(seeded_store.list_strategies()) == 4
    assert seeded_store.get_strategy("strategy_sparse").interval_rule == "1d,3d,7d,15d,30d,60d"


def test_unknown_strategy_raises_not_found(store):
    with pytest.raises(NotFound):
        store.get_strategy("nope")


def test_commit_schedule_is_compare_and_swap(store):
    progress = store.register_word("u1", "apple")
    decision = SchedulingEngine().schedule(progress, ProficiencyLevel.L1, make_strategy(), NOW)

    stored = store.commit_schedule(decision, expected_version=progress.version)
    assert stored.version == 1
    assert stored.next_review_date == NOW + timedelta(days=1)

    with pytest.raises(PersistenceConflict):
        store.commit_schedule(decision, expected_version=progress.version)
    assert len(store.list_schedule_logs("u1", "apple")) == 1


def test_commit_schedule_inserts_missing_row(store):
    progress = store.register_word("u1", "apple")
    fresh = progress.model_copy(update={"id": None, "word_id": "pear"})
    decision = SchedulingEngine().schedule(fresh, ProficiencyLevel.L2, make_strategy(), NOW)

    stored = store.commit_schedule(decision, expected_version=0)
    assert stored.id is not None
    assert stored.word_id == "pear"
    assert stored.version == 1


def test_record_test_result_upserts_per_day(store):
    store.record_test_result("u1", "apple", ProficiencyLevel.L1, test_date=date(2024, 1, 1))
    store.record_test_result("u1", "apple", ProficiencyLevel.L3, test_date=date(2024, 1, 1))
    store.record_test_result("u1", "apple", ProficiencyLevel.L0, test_date=date(2023, 12, 30))
    store.record_test_result("u1", "apple", ProficiencyLevel.L2, phase=AssessmentPhase.PRE_TEST, test_date=date(2024, 1, 2))

    levels = store.load_history_levels("u1", "apple", AssessmentPhase.POST_TEST)
    assert levels == [ProficiencyLevel.L0, ProficiencyLevel.L3]


def test_history_of_known_pair_without_tests_is_empty(store):
    store.register_word("u1", "apple")
    assert HistoryService(store).load_history("u1", "apple") == []


def test_history_of_unknown_pair_raises(store):
    with pytest.raises(NotFound) as exc:
        HistoryService(store).load_history("u1", "ghost")
    assert exc.value.code == "word_history_not_found"


def test_history_without_progress_row_is_still_known(store):
    store.record_test_result("u1", "apple", ProficiencyLevel.L2, test_date=date(2024, 1, 1))
    history = HistoryService(store)

    assert history.load_history("u1", "apple") == [ProficiencyLevel.L2]
    assert history.load_history("u1", "apple", phase=AssessmentPhase.PRE_TEST) == []


def test_append_action(store):
    store.append_action("u1", "apple", ActionType.LISTEN, session_id="s", phase=3, is_correct=True)
    assert store.count_actions("u1", "apple") == 1
