from __future__ import annotations

import pytest

from wordprogress.core.exceptions import InvalidTransition
from wordprogress.models.enums import ActionType, AnswerOutcome, AssessmentPhase, ProficiencyLevel
from wordprogress.services.assessment_machine import (
    POST_TEST_FLOW,
    PRE_TEST_FLOW,
    PRE_TEST_SPELLING_FLOW,
    QUIZ_STAGES,
    START,
    AssessmentSession,
    Stage,
    answer,
    flow_for_phase,
    next_stage,
    route,
    run_assessment,
    start_assessment,
    submit_answer,
)


def test_empty_history_routes_to_flow1():
    session = start_assessment([])
    assert session.current_stage is Stage.FLOW1_TRANS_EN
    assert session.route_name == "isFlow1"


@pytest.mark.parametrize("history", [[1, 2, 3, 2], [3, 3, 3, 3, 3], [0, 0, 0, 1]])
def test_long_history_with_nonzero_last_routes_to_flow2(history):
    assert route(history) == ("isFlow2", Stage.FLOW2_LISTEN)


@pytest.mark.parametrize("history", [[0], [2, 0], [3, 3, 3, 3, 0], [1, 1, 1, 1, 1, 1, 0]])
def test_last_level_zero_always_routes_to_flow1(history):
    assert route(history) == ("isFlow1", Stage.FLOW1_TRANS_EN)


@pytest.mark.parametrize("history", [[1], [2, 3], [0, 0, 2]])
def test_short_history_reaches_flow_default(history):
    assert route(history) == ("default", Stage.FLOW_DEFAULT)


def test_flow1_double_success_resolves_l2():
    session = start_assessment([])
    submit_answer(session, AnswerOutcome.SUCCESS)
    step = submit_answer(session, AnswerOutcome.SUCCESS)

    assert step.is_terminal
    assert step.resolved_level is ProficiencyLevel.L2
    assert session.path == [
        Stage.DETERMINE_PATH,
        Stage.FLOW1_TRANS_EN,
        Stage.FLOW1_PRONOUNCE,
        Stage.L2,
    ]


def test_trailing_zero_beats_long_history():
    assert run_assessment([0, 0, 0, 0], ["fail"]) is ProficiencyLevel.L0


def test_flow2_listen_success_resolves_l3():
    assert run_assessment([2, 2, 1, 3], [True]) is ProficiencyLevel.L3


@pytest.mark.parametrize(
    "history, answers, expected",
    [
        ([], ["fail"], ProficiencyLevel.L0),
        ([], ["success", "fail"], ProficiencyLevel.L1),
        ([1, 2, 3, 3], ["fail", "success"], ProficiencyLevel.L2),
        ([1, 2, 3, 3], ["fail", "fail"], ProficiencyLevel.L0),
        ([2], ["success"], ProficiencyLevel.L2),
        ([2], ["fail"], ProficiencyLevel.L1),
    ],
)
def test_every_path_resolves_expected_level(history, answers, expected):
    assert run_assessment(history, answers) is expected


def test_answer_to_terminal_stage_is_rejected():
    session = start_assessment([])
    submit_answer(session, "fail")
    assert session.is_complete

    with pytest.raises(InvalidTransition) as exc:
        submit_answer(session, "success")
    assert exc.value.status_code == 409
    assert session.aborted


@pytest.mark.parametrize("terminal", [Stage.L0, Stage.L1, Stage.L2, Stage.L3, Stage.L4])
def test_terminal_stages_accept_nothing(terminal):
    for event in (START, answer(True), answer(False)):
        with pytest.raises(InvalidTransition):
            next_stage(terminal, event)


def test_start_sent_to_a_test_stage_is_rejected_and_aborts():
    session = start_assessment([2])
    with pytest.raises(InvalidTransition):
        session.send(START)
    assert session.aborted

    with pytest.raises(InvalidTransition):
        submit_answer(session, "success")


def test_answer_before_start_is_rejected():
    session = AssessmentSession(history_levels=())
    with pytest.raises(InvalidTransition):
        session.send(answer(True))


def test_unknown_outcome_is_rejected():
    session = start_assessment([])
    with pytest.raises(InvalidTransition):
        submit_answer(session, "maybe")
    assert session.aborted


def test_no_stage_leads_back_to_determine_path():
    targets = {quiz.on_success for quiz in QUIZ_STAGES.values()} | {
        quiz.on_fail for quiz in QUIZ_STAGES.values()
    }
    assert Stage.DETERMINE_PATH not in targets
    assert Stage.L0.level is ProficiencyLevel.L0
    assert Stage.L3.level is ProficiencyLevel.L3


def test_expected_action_follows_stage():
    session = start_assessment([1, 1, 1, 1])
    assert session.expected_action is ActionType.LISTEN
    submit_answer(session, "fail")
    assert session.expected_action is ActionType.TRANS_EN


def test_incomplete_answer_sequence_raises_value_error():
    with pytest.raises(ValueError):
        run_assessment([], ["success"])


def test_replay_is_deterministic():
    history = [1, 3, 2, 2, 3]
    answers = ["fail", "success"]
    assert run_assessment(history, answers) == run_assessment(history, answers)


@pytest.mark.parametrize(
    "history, expected",
    [
        ([], ("isFlow1", Stage.FLOW1_LISTEN)),
        ([3], ("isFlow2", Stage.FLOW2_TRANS_EN)),
        ([1, 3], ("isFlow3", Stage.FLOW3_LISTEN)),
        ([1, 2, 4, 2], ("isFlow3", Stage.FLOW3_LISTEN)),
        ([1], ("isFlow4", Stage.FLOW4_TRANS_CH)),
        ([0, 1, 2, 2], ("isFlow4", Stage.FLOW4_TRANS_CH)),
        ([2], ("default", Stage.FLOW5_TRANS_EN)),
        ([1, 2, 1], ("default", Stage.FLOW5_TRANS_EN)),
    ],
)
def test_pre_test_routing(history, expected):
    assert route(history, PRE_TEST_FLOW) == expected


@pytest.mark.parametrize(
    "flow, history, answers, expected",
    [
        (PRE_TEST_FLOW, [], ["success"], ProficiencyLevel.L3),
        (PRE_TEST_SPELLING_FLOW, [], ["success", "success"], ProficiencyLevel.L4),
        (PRE_TEST_SPELLING_FLOW, [], ["success", "fail"], ProficiencyLevel.L3),
        (PRE_TEST_FLOW, [], ["fail", "success"], ProficiencyLevel.L1),
        (PRE_TEST_FLOW, [3], ["fail"], ProficiencyLevel.L0),
        (PRE_TEST_FLOW, [1, 3], ["fail", "success"], ProficiencyLevel.L2),
        (PRE_TEST_FLOW, [1], ["success", "fail"], ProficiencyLevel.L1),
        (PRE_TEST_FLOW, [2], ["success", "success"], ProficiencyLevel.L2),
    ],
)
def test_pre_test_paths(flow, history, answers, expected):
    assert run_assessment(history, answers, flow) is expected


def test_spelling_stage_expects_a_spelling_answer():
    session = start_assessment([], PRE_TEST_SPELLING_FLOW)
    assert session.expected_action is ActionType.LISTEN
    submit_answer(session, "success")
    assert session.current_stage is Stage.FLOW1_SPELLING
    assert session.expected_action is ActionType.SPELLING


def test_stage_outside_the_flow_is_rejected():
    with pytest.raises(InvalidTransition):
        next_stage(Stage.FLOW5_TRANS_EN, answer(True), POST_TEST_FLOW.stages)


def test_phase_selects_the_flow():
    assert flow_for_phase(AssessmentPhase.PRE_TEST) is PRE_TEST_FLOW
    assert flow_for_phase(AssessmentPhase.PRE_TEST, enable_spelling=True) is PRE_TEST_SPELLING_FLOW
    assert flow_for_phase(AssessmentPhase.POST_TEST, enable_spelling=True) is POST_TEST_FLOW
