"""Deterministic assessment state machines.

A session starts in ``determinePath``. The START signal routes it to the
first test stage by evaluating the routing guards of its flow in order
(first match wins). Each test stage then takes exactly one answer and moves
either to another test stage or to a terminal level stage. The walk is a
pure function of the history and the answers: no timers, no randomness, no
hidden state.

Post-test routing::

    isFlow1  history empty or last level is L0   -> flow1_transEn
    isFlow2  more than three past assessments    -> flow2_listen
    default                                      -> flowDefault

Post-test stages (success / fail)::

    flow1_transEn    flow1_pronounce / L0
    flow1_pronounce  L2 / L1
    flow2_listen     L3 / flow2_transEn
    flow2_transEn    L2 / L0
    flowDefault      L2 / L1

Pre-test routing::

    isFlow1  history empty                                  -> flow1_listen
    isFlow2  a single past assessment at L3                 -> flow2_transEn
    isFlow3  last level L3, or last three all L2 or better  -> flow3_listen
    isFlow4  a single L1, or first L0 and last two >= L2    -> flow4_transCh
    default                                                 -> flow5_transEn

Pre-test stages (success / fail)::

    flow1_listen     flow1_spelling (L3 without spelling) / flow1_transEn
    flow1_spelling   L4 / L3
    flow1_transEn    L1 / L0
    flow2_transEn    L3 / L0
    flow3_listen     L3 / flow3_transEn
    flow3_transEn    L2 / L0
    flow4_transCh    flow4_pronounce / L0
    flow4_pronounce  L2 / L1
    flow5_transEn    flow5_pronounce / L0
    flow5_pronounce  L2 / L1

The pre-test is the only flow able to reach L4.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional, Sequence, Tuple, Union

from wordprogress.core.exceptions import InvalidTransition
from wordprogress.models.enums import ActionType, AnswerOutcome, AssessmentPhase, ProficiencyLevel


class Stage(str, enum.Enum):
    DETERMINE_PATH = "determinePath"
    FLOW1_LISTEN = "flow1_listen"
    FLOW1_SPELLING = "flow1_spelling"
    FLOW1_TRANS_EN = "flow1_transEn"
    FLOW1_PRONOUNCE = "flow1_pronounce"
    FLOW2_LISTEN = "flow2_listen"
    FLOW2_TRANS_EN = "flow2_transEn"
    FLOW3_LISTEN = "flow3_listen"
    FLOW3_TRANS_EN = "flow3_transEn"
    FLOW4_TRANS_CH = "flow4_transCh"
    FLOW4_PRONOUNCE = "flow4_pronounce"
    FLOW5_TRANS_EN = "flow5_transEn"
    FLOW5_PRONOUNCE = "flow5_pronounce"
    FLOW_DEFAULT = "flowDefault"
    L0 = "L0"
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    L4 = "L4"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_LEVELS

    @property
    def level(self) -> Optional[ProficiencyLevel]:
        return TERMINAL_LEVELS.get(self)


TERMINAL_LEVELS: dict[Stage, ProficiencyLevel] = {
    Stage.L0: ProficiencyLevel.L0,
    Stage.L1: ProficiencyLevel.L1,
    Stage.L2: ProficiencyLevel.L2,
    Stage.L3: ProficiencyLevel.L3,
    Stage.L4: ProficiencyLevel.L4,
}


@dataclass(frozen=True)
class QuizStage:
    """A stage waiting for one answer, and the interaction it tests."""

    action_type: ActionType
    on_success: Stage
    on_fail: Stage

    def target(self, outcome: AnswerOutcome) -> Stage:
        return self.on_success if outcome is AnswerOutcome.SUCCESS else self.on_fail


QUIZ_STAGES: dict[Stage, QuizStage] = {
    Stage.FLOW1_TRANS_EN: QuizStage(ActionType.TRANS_EN, Stage.FLOW1_PRONOUNCE, Stage.L0),
    Stage.FLOW1_PRONOUNCE: QuizStage(ActionType.PRONOUNCE, Stage.L2, Stage.L1),
    Stage.FLOW2_LISTEN: QuizStage(ActionType.LISTEN, Stage.L3, Stage.FLOW2_TRANS_EN),
    Stage.FLOW2_TRANS_EN: QuizStage(ActionType.TRANS_EN, Stage.L2, Stage.L0),
    Stage.FLOW_DEFAULT: QuizStage(ActionType.TRANS_EN, Stage.L2, Stage.L1),
}


History = Tuple[ProficiencyLevel, ...]
Guard = Callable[[History], bool]
Route = Tuple[str, Guard, Stage]


def is_flow1(history: History) -> bool:
    return len(history) == 0 or history[-1] == ProficiencyLevel.L0


def is_flow2(history: History) -> bool:
    return len(history) > 3


def is_default(history: History) -> bool:
    return True


ROUTES: tuple[Route, ...] = (
    ("isFlow1", is_flow1, Stage.FLOW1_TRANS_EN),
    ("isFlow2", is_flow2, Stage.FLOW2_LISTEN),
    ("default", is_default, Stage.FLOW_DEFAULT),
)


# --- Pre-test -----------------------------------------------------------------


def _at_least_known(levels: Iterable[ProficiencyLevel]) -> bool:
    return all(level >= ProficiencyLevel.L2 for level in levels)


def is_pre_flow1(history: History) -> bool:
    return len(history) == 0


def is_pre_flow2(history: History) -> bool:
    return len(history) == 1 and history[0] == ProficiencyLevel.L3


def is_pre_flow3(history: History) -> bool:
    if history and history[-1] == ProficiencyLevel.L3:
        return True
    return len(history) >= 3 and _at_least_known(history[-3:])


def is_pre_flow4(history: History) -> bool:
    if len(history) == 1 and history[0] == ProficiencyLevel.L1:
        return True
    return len(history) >= 2 and history[0] == ProficiencyLevel.L0 and _at_least_known(history[-2:])


PRE_TEST_ROUTES: tuple[Route, ...] = (
    ("isFlow1", is_pre_flow1, Stage.FLOW1_LISTEN),
    ("isFlow2", is_pre_flow2, Stage.FLOW2_TRANS_EN),
    ("isFlow3", is_pre_flow3, Stage.FLOW3_LISTEN),
    ("isFlow4", is_pre_flow4, Stage.FLOW4_TRANS_CH),
    ("default", is_default, Stage.FLOW5_TRANS_EN),
)


def pre_test_stages(enable_spelling: bool = False) -> dict[Stage, QuizStage]:
    return {
        Stage.FLOW1_LISTEN: QuizStage(
            ActionType.LISTEN,
            Stage.FLOW1_SPELLING if enable_spelling else Stage.L3,
            Stage.FLOW1_TRANS_EN,
        ),
        Stage.FLOW1_SPELLING: QuizStage(ActionType.SPELLING, Stage.L4, Stage.L3),
        Stage.FLOW1_TRANS_EN: QuizStage(ActionType.TRANS_EN, Stage.L1, Stage.L0),
        Stage.FLOW2_TRANS_EN: QuizStage(ActionType.TRANS_EN, Stage.L3, Stage.L0),
        Stage.FLOW3_LISTEN: QuizStage(ActionType.LISTEN, Stage.L3, Stage.FLOW3_TRANS_EN),
        Stage.FLOW3_TRANS_EN: QuizStage(ActionType.TRANS_EN, Stage.L2, Stage.L0),
        Stage.FLOW4_TRANS_CH: QuizStage(ActionType.TRANS_CH, Stage.FLOW4_PRONOUNCE, Stage.L0),
        Stage.FLOW4_PRONOUNCE: QuizStage(ActionType.PRONOUNCE, Stage.L2, Stage.L1),
        Stage.FLOW5_TRANS_EN: QuizStage(ActionType.TRANS_EN, Stage.FLOW5_PRONOUNCE, Stage.L0),
        Stage.FLOW5_PRONOUNCE: QuizStage(ActionType.PRONOUNCE, Stage.L2, Stage.L1),
    }


@dataclass(frozen=True)
class AssessmentFlow:
    """Routing guards plus the stage graph they lead into."""

    name: str
    routes: tuple[Route, ...]
    stages: Mapping[Stage, QuizStage]


POST_TEST_FLOW = AssessmentFlow("post_test", ROUTES, QUIZ_STAGES)
PRE_TEST_FLOW = AssessmentFlow("pre_test", PRE_TEST_ROUTES, pre_test_stages(enable_spelling=False))
PRE_TEST_SPELLING_FLOW = AssessmentFlow("pre_test_spelling", PRE_TEST_ROUTES, pre_test_stages(enable_spelling=True))


def flow_for_phase(phase: int, enable_spelling: bool = False) -> AssessmentFlow:
    if int(phase) == AssessmentPhase.PRE_TEST:
        return PRE_TEST_SPELLING_FLOW if enable_spelling else PRE_TEST_FLOW
    return POST_TEST_FLOW


def route(history: Sequence[int], flow: AssessmentFlow = POST_TEST_FLOW) -> tuple[str, Stage]:
    """Return the name of the first matching guard and the stage it leads to."""

    levels = normalize_history(history)
    for name, guard, target in flow.routes:
        if guard(levels):
            return name, target
    raise AssertionError("the default route always matches")  # pragma: no cover


# --- Events -------------------------------------------------------------------


@dataclass(frozen=True)
class Start:
    type: str = "START"


@dataclass(frozen=True)
class Answer:
    outcome: AnswerOutcome
    type: str = "ANSWER"


AssessmentEvent = Union[Start, Answer]
START = Start()


def answer(outcome: Union[AnswerOutcome, str, bool]) -> Answer:
    """Build an ANSWER event from an outcome, its string value or a bool."""

    if isinstance(outcome, bool):
        return Answer(AnswerOutcome.SUCCESS if outcome else AnswerOutcome.FAIL)
    return Answer(AnswerOutcome(outcome))


def next_stage(
    stage: Stage,
    event: AssessmentEvent,
    stages: Mapping[Stage, QuizStage] = QUIZ_STAGES,
) -> Stage:
    """Pure transition function; raises ``InvalidTransition`` on anything off-graph."""

    quiz = stages.get(stage)
    if quiz is None:
        raise InvalidTransition(stage=stage.value, event=getattr(event, "type", repr(event)))

    if not isinstance(event, Answer) or not isinstance(event.outcome, AnswerOutcome):
        raise InvalidTransition(stage=stage.value, event=getattr(event, "type", repr(event)))
    return quiz.target(event.outcome)


def normalize_history(history: Iterable[int]) -> History:
    return tuple(ProficiencyLevel(int(level)) for level in history)


# --- Session ------------------------------------------------------------------


@dataclass(frozen=True)
class StepResult:
    """Either the stage now awaiting an answer, or the resolved level."""

    stage: Stage
    resolved_level: Optional[ProficiencyLevel] = None

    @property
    def is_terminal(self) -> bool:
        return self.resolved_level is not None


@dataclass
class AssessmentSession:
    history_levels: History
    current_stage: Stage = Stage.DETERMINE_PATH
    resolved_level: Optional[ProficiencyLevel] = None
    route_name: Optional[str] = None
    aborted: bool = False
    path: list[Stage] = field(default_factory=lambda: [Stage.DETERMINE_PATH])
    flow: AssessmentFlow = POST_TEST_FLOW

    @property
    def is_complete(self) -> bool:
        return self.resolved_level is not None

    @property
    def expected_action(self) -> Optional[ActionType]:
        quiz = self.flow.stages.get(self.current_stage)
        return quiz.action_type if quiz else None

    def send(self, event: AssessmentEvent) -> StepResult:
        if self.aborted:
            raise InvalidTransition(stage=self.current_stage.value, event=event.type)

        try:
            if isinstance(event, Start):
                if self.current_stage is not Stage.DETERMINE_PATH:
                    raise InvalidTransition(stage=self.current_stage.value, event=event.type)
                self.route_name, target = route(self.history_levels, self.flow)
            else:
                target = next_stage(self.current_stage, event, self.flow.stages)
        except InvalidTransition:
            # A caller bug poisons the session; it has to be restarted.
            self.aborted = True
            raise

        self.current_stage = target
        self.path.append(target)
        if target.is_terminal:
            self.resolved_level = target.level
        return StepResult(stage=target, resolved_level=self.resolved_level)


def start_assessment(history: Sequence[int], flow: AssessmentFlow = POST_TEST_FLOW) -> AssessmentSession:
    """Create a session and route it with the START signal."""

    session = AssessmentSession(history_levels=normalize_history(history), flow=flow)
    session.send(START)
    return session


def submit_answer(session: AssessmentSession, outcome: Union[AnswerOutcome, str, bool]) -> StepResult:
    try:
        event = answer(outcome)
    except ValueError:
        session.aborted = True
        raise InvalidTransition(stage=session.current_stage.value, event=f"ANSWER({outcome!r})") from None
    return session.send(event)


def run_assessment(
    history: Sequence[int],
    answers: Iterable[Union[AnswerOutcome, str, bool]],
    flow: AssessmentFlow = POST_TEST_FLOW,
) -> ProficiencyLevel:
    """Replay a complete answer sequence and return the terminal level.

    Raises ``InvalidTransition`` when the sequence is too long, and
    ``ValueError`` when it ends before a terminal stage is reached.
    """

    session = start_assessment(history, flow)
    for outcome in answers:
        submit_answer(session, outcome)
    if session.resolved_level is None:
        raise ValueError(f"assessment incomplete, waiting in '{session.current_stage.value}'")
    return session.resolved_level


__all__ = [
    "Stage",
    "TERMINAL_LEVELS",
    "QUIZ_STAGES",
    "ROUTES",
    "PRE_TEST_ROUTES",
    "AssessmentFlow",
    "POST_TEST_FLOW",
    "PRE_TEST_FLOW",
    "PRE_TEST_SPELLING_FLOW",
    "flow_for_phase",
    "pre_test_stages",
    "START",
    "Start",
    "Answer",
    "AssessmentEvent",
    "AssessmentSession",
    "StepResult",
    "answer",
    "is_flow1",
    "is_flow2",
    "next_stage",
    "route",
    "start_assessment",
    "submit_answer",
    "run_assessment",
]
