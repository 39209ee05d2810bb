"""
Session phases as a tagged variant and the pure transition function.

transition(state, event) -> (new_state, effects). No clocks, no timers, no
randomness: stimuli and timestamps arrive inside events, and everything with
a side effect (timers, recording, sealing, saving) is returned as an Effect
for SessionController to carry out in order.

Phase flow:
    Idle -> Intro(CRT1) -> CrtTrial ... -> Pause -> Intro(CRT2) -> ...
    ... CrtTrial(CRT8) -> Pause -> Break(10..1) -> Intro(STROOP)
    -> StroopTrial ... -> Done
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import ClassVar, Optional, Union

from crt import config
from crt.stimuli import CrtStimulus, Stimulus, StroopStimulus

# Timer roles; at most one live timer per role
PRESENTATION = "presentation"
PAUSE = "pause"
BREAK = "break"
STROOP_TICK = "stroop_tick"
FEEDBACK = "feedback"


# ── states ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Idle:
    phase: ClassVar[str] = "idle"


@dataclass(frozen=True)
class Intro:
    phase: ClassVar[str] = "intro"
    section_id: str


@dataclass(frozen=True)
class CrtTrial:
    phase: ClassVar[str] = "crt"
    section_index: int
    trial_index: int
    stimuli: tuple[CrtStimulus, ...]
    ready_at_ms: float       # RT origin: scheduled, then actual presentation-ready time

    @property
    def section_id(self) -> str:
        return config.CRT_ORDER[self.section_index]

    @property
    def stimulus(self) -> CrtStimulus:
        return self.stimuli[self.trial_index]


@dataclass(frozen=True)
class Pause:
    phase: ClassVar[str] = "pause"
    finished: str
    next_section: Optional[str]    # None: the break follows


@dataclass(frozen=True)
class Break:
    phase: ClassVar[str] = "break"
    remaining_s: int


@dataclass(frozen=True)
class StroopTrial:
    phase: ClassVar[str] = "stroop"
    trial_index: int
    pool: tuple[StroopStimulus, ...]
    deadline_ms: float
    ready_at_ms: float
    remaining_s: float

    @property
    def section_id(self) -> str:
        return config.STROOP

    @property
    def stimulus(self) -> StroopStimulus:
        return self.pool[self.trial_index]


@dataclass(frozen=True)
class Done:
    phase: ClassVar[str] = "done"


State = Union[Idle, Intro, CrtTrial, Pause, Break, StroopTrial, Done]


# ── events ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Acknowledge:
    stimuli: tuple[Stimulus, ...]
    now_ms: float


@dataclass(frozen=True)
class Answer:
    label: str
    now_ms: float


@dataclass(frozen=True)
class TimerFired:
    role: str
    now_ms: float


Event = Union[Start, Acknowledge, Answer, TimerFired]


# ── effects ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class StartTimer:
    role: str
    after_ms: float


@dataclass(frozen=True)
class CancelTimer:
    role: str


@dataclass(frozen=True)
class ResetSession:
    pass


@dataclass(frozen=True)
class BeginSection:
    section_id: str


@dataclass(frozen=True)
class RecordTrial:
    section_id: str
    stimulus: Stimulus
    answer: str
    ready_at_ms: float
    answered_at_ms: float


@dataclass(frozen=True)
class SealSection:
    section_id: str


@dataclass(frozen=True)
class Alert:
    pass


@dataclass(frozen=True)
class CompleteSession:
    pass


Effect = Union[StartTimer, CancelTimer, ResetSession, BeginSection, RecordTrial, SealSection, Alert, CompleteSession]


# ── transitions ──────────────────────────────────────────────────────────────


def _begin(section_id: str, stimuli: tuple, now_ms: float) -> tuple[State, list[Effect]]:
    ready = now_ms + config.PRESENTATION_DELAY_MS
    effects: list[Effect] = [
        BeginSection(section_id),
        StartTimer(PRESENTATION, config.PRESENTATION_DELAY_MS),
    ]
    if section_id == config.STROOP:
        effects.append(StartTimer(STROOP_TICK, config.STROOP_TICK_MS))
        return StroopTrial(
            trial_index=0,
            pool=stimuli,
            deadline_ms=now_ms + config.STROOP_DURATION_S * 1000.0,
            ready_at_ms=ready,
            remaining_s=config.STROOP_DURATION_S,
        ), effects
    return CrtTrial(
        section_index=config.CRT_ORDER.index(section_id),
        trial_index=0,
        stimuli=stimuli,
        ready_at_ms=ready,
    ), effects


def _answer_crt(state: CrtTrial, event: Answer) -> tuple[State, list[Effect]]:
    effects: list[Effect] = [
        CancelTimer(PRESENTATION),
        RecordTrial(state.section_id, state.stimulus, event.label, state.ready_at_ms, event.now_ms),
    ]
    nxt = state.trial_index + 1
    if nxt < len(state.stimuli):
        effects.append(StartTimer(PRESENTATION, config.PRESENTATION_DELAY_MS))
        return replace(
            state, trial_index=nxt, ready_at_ms=event.now_ms + config.PRESENTATION_DELAY_MS
        ), effects

    effects.append(SealSection(state.section_id))
    if state.section_index + 1 < len(config.CRT_ORDER):
        effects.append(StartTimer(PAUSE, config.INTER_SECTION_PAUSE_MS))
        return Pause(state.section_id, config.CRT_ORDER[state.section_index + 1]), effects
    effects.append(StartTimer(PAUSE, config.FINAL_CRT_PAUSE_MS))
    return Pause(state.section_id, None), effects


def _finish_stroop(timed_out: bool) -> tuple[State, list[Effect]]:
    effects: list[Effect] = [
        CancelTimer(PRESENTATION),
        CancelTimer(STROOP_TICK),
        SealSection(config.STROOP),
    ]
    if timed_out:
        effects.append(Alert())
    effects.append(CompleteSession())
    return Done(), effects


def _answer_stroop(state: StroopTrial, event: Answer) -> tuple[State, list[Effect]]:
    if event.now_ms >= state.deadline_ms:
        return state, []
    effects: list[Effect] = [
        CancelTimer(PRESENTATION),
        RecordTrial(state.section_id, state.stimulus, event.label, state.ready_at_ms, event.now_ms),
    ]
    nxt = state.trial_index + 1
    if nxt < len(state.pool):
        effects.append(StartTimer(PRESENTATION, config.PRESENTATION_DELAY_MS))
        return replace(
            state, trial_index=nxt, ready_at_ms=event.now_ms + config.PRESENTATION_DELAY_MS
        ), effects
    done, tail = _finish_stroop(timed_out=False)
    return done, effects + tail


def _timer(state: State, event: TimerFired) -> tuple[State, list[Effect]]:
    role = event.role

    if role == PRESENTATION and isinstance(state, (CrtTrial, StroopTrial)):
        return replace(state, ready_at_ms=event.now_ms), []

    if role == PAUSE and isinstance(state, Pause):
        if state.next_section is not None:
            return Intro(state.next_section), []
        return Break(config.BREAK_TICKS), [StartTimer(BREAK, config.BREAK_TICK_MS)]

    if role == BREAK and isinstance(state, Break):
        remaining = state.remaining_s - 1
        if remaining <= 0:
            return Intro(config.STROOP), []
        return Break(remaining), [StartTimer(BREAK, config.BREAK_TICK_MS)]

    if role == STROOP_TICK and isinstance(state, StroopTrial):
        if event.now_ms >= state.deadline_ms:
            return _finish_stroop(timed_out=True)
        remaining = (state.deadline_ms - event.now_ms) / 1000.0
        return replace(state, remaining_s=remaining), [StartTimer(STROOP_TICK, config.STROOP_TICK_MS)]

    return state, []


def transition(state: State, event: Event) -> tuple[State, list[Effect]]:
    """
    Apply one event. Events that mean nothing in the current phase (an
    answer during a pause, acknowledge mid-trial) leave the state unchanged
    with no effects.
    """
    if isinstance(event, Start):
        if isinstance(state, (Idle, Done)):
            return Intro(config.CRT_ORDER[0]), [ResetSession()]
        return state, []

    if isinstance(event, Acknowledge):
        if isinstance(state, Intro) and event.stimuli:
            return _begin(state.section_id, tuple(event.stimuli), event.now_ms)
        return state, []

    if isinstance(event, Answer):
        if isinstance(state, CrtTrial):
            return _answer_crt(state, event)
        if isinstance(state, StroopTrial):
            return _answer_stroop(state, event)
        return state, []

    if isinstance(event, TimerFired):
        return _timer(state, event)

    raise ValueError(f"Unknown event: {event!r}")
