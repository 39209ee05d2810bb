"""
SessionController: owns the phase, timers, in-progress trials, sealed
sections and the one-shot save guard. Transitions come from crt.machine;
this module only carries out their effects.
"""
from __future__ import annotations

import math
import uuid
from typing import TYPE_CHECKING, Callable, Optional

from psychopy import logging

from crt import config, machine
from crt.recorder import SectionResult, TestSession, TrialRecord, TrialRecorder, summarize
from crt.rng import RandomSource, default_source
from crt.stimuli import Stimulus, generate, labels_for, stroop_pool
from crt.timers import Clock, TimerHandle, TimerQueue

if TYPE_CHECKING:
    from crt.storage import SessionLog


class SessionController:
    def __init__(
        self,
        clock: Clock,
        timers: Optional[TimerQueue] = None,
        rng: Optional[RandomSource] = None,
        session_log: Optional[SessionLog] = None,
        axis_variant: str = config.AXIS_VARIANT,
        on_trial: Optional[Callable[[str, TrialRecord], None]] = None,
        on_section: Optional[Callable[[SectionResult], None]] = None,
        on_alert: Optional[Callable[[], None]] = None,
        on_complete: Optional[Callable[[TestSession], None]] = None,
    ) -> None:
        self._clock = clock
        self._timers = timers if timers is not None else TimerQueue(clock)
        self._rng = rng or default_source()
        self._session_log = session_log
        self._axis_variant = axis_variant
        self._on_trial = on_trial
        self._on_section = on_section
        self._on_alert = on_alert
        self._on_complete = on_complete

        self._state: machine.State = machine.Idle()
        self._handles: dict[str, TimerHandle] = {}
        self._recorder = TrialRecorder()
        self._section_started_at = 0
        self._crt_results: list[SectionResult] = []
        self._stroop_result: Optional[SectionResult] = None
        self._saved = False
        self._session: Optional[TestSession] = None
        self._feedback: Optional[bool] = None

    # ── public API ───────────────────────────────────────────────────────────

    @property
    def timers(self) -> TimerQueue:
        return self._timers

    @property
    def state(self) -> machine.State:
        return self._state

    @property
    def phase(self) -> str:
        return self._state.phase

    @property
    def current_stimulus(self) -> Optional[Stimulus]:
        if isinstance(self._state, (machine.CrtTrial, machine.StroopTrial)):
            return self._state.stimulus
        return None

    @property
    def labels(self) -> tuple[str, ...]:
        if isinstance(self._state, (machine.CrtTrial, machine.StroopTrial)):
            return labels_for(self._state.section_id)
        return ()

    @property
    def remaining_s(self) -> Optional[int]:
        """Whole seconds left in the break or the Stroop window."""
        if isinstance(self._state, machine.Break):
            return self._state.remaining_s
        if isinstance(self._state, machine.StroopTrial):
            return max(0, math.ceil(self._state.remaining_s))
        return None

    @property
    def message(self) -> Optional[str]:
        s = self._state
        if isinstance(s, machine.Intro):
            return config.INSTRUCTIONS[s.section_id]
        if isinstance(s, machine.Pause):
            if s.next_section is not None:
                return f"{s.finished} дууслаа. Дараагийн хэсэг эхлэх гэж байна..."
            return f"{s.finished} дууслаа. Амралт эхэлж байна..."
        if isinstance(s, machine.Break):
            return f"CRT дууслаа. {s.remaining_s} секундийн дараа Stroop эхэлнэ..."
        if isinstance(s, machine.Done):
            return "Дууслаа. Үр дүн хадгалагдлаа."
        return None

    @property
    def feedback(self) -> Optional[bool]:
        """Correctness of the last answer while its flash is showing, else None."""
        return self._feedback

    @property
    def trials(self) -> list[TrialRecord]:
        return list(self._recorder.trials)

    @property
    def sections(self) -> list[SectionResult]:
        return self._crt_results + ([self._stroop_result] if self._stroop_result else [])

    @property
    def session(self) -> Optional[TestSession]:
        return self._session

    def start(self) -> None:
        self._dispatch(machine.Start())

    def acknowledge(self) -> None:
        """Leave the current intro; generates that section's stimuli."""
        if not isinstance(self._state, machine.Intro):
            logging.debug(f"acknowledge ignored in phase {self.phase}")
            return
        section_id = self._state.section_id
        if section_id == config.STROOP:
            stimuli: list = stroop_pool(self._rng)
        else:
            stimuli = generate(section_id, config.CRT_TRIALS, self._rng, self._axis_variant)
        self._dispatch(machine.Acknowledge(tuple(stimuli), self._clock.now_ms()))

    def answer(self, label: str) -> None:
        self._dispatch(machine.Answer(label, self._clock.now_ms()))

    # ── internals ────────────────────────────────────────────────────────────

    def _dispatch(self, event: machine.Event) -> None:
        old_phase = self.phase
        self._state, effects = machine.transition(self._state, event)
        for effect in effects:
            self._apply(effect)
        if self.phase != old_phase:
            self._cancel(machine.FEEDBACK)
            self._feedback = None
            logging.debug(f"phase {old_phase} -> {self.phase}")

    def _apply(self, effect: machine.Effect) -> None:
        if isinstance(effect, machine.StartTimer):
            self._arm(effect.role, effect.after_ms)
        elif isinstance(effect, machine.CancelTimer):
            self._cancel(effect.role)
        elif isinstance(effect, machine.ResetSession):
            self._reset()
        elif isinstance(effect, machine.BeginSection):
            self._recorder.reset()
            self._section_started_at = self._clock.epoch_ms()
            logging.exp(f"Section {effect.section_id} started")
        elif isinstance(effect, machine.RecordTrial):
            self._record(effect)
        elif isinstance(effect, machine.SealSection):
            self._seal(effect.section_id)
        elif isinstance(effect, machine.Alert):
            logging.exp("Stroop time is up")
            if self._on_alert is not None:
                self._on_alert()
        elif isinstance(effect, machine.CompleteSession):
            self._complete()
        else:
            raise ValueError(f"Unknown effect: {effect!r}")

    def _arm(self, role: str, after_ms: float) -> None:
        self._cancel(role)
        self._handles[role] = self._timers.schedule(after_ms, lambda: self._fire(role))

    def _cancel(self, role: str) -> None:
        handle = self._handles.pop(role, None)
        if handle is not None:
            self._timers.cancel(handle)

    def _fire(self, role: str) -> None:
        self._handles.pop(role, None)
        if role == machine.FEEDBACK:
            self._feedback = None
            return
        self._dispatch(machine.TimerFired(role, self._clock.now_ms()))

    def _reset(self) -> None:
        for role in list(self._handles):
            self._cancel(role)
        self._recorder.reset()
        self._crt_results = []
        self._stroop_result = None
        self._saved = False
        self._session = None
        self._feedback = None

    def _record(self, effect: machine.RecordTrial) -> None:
        rec = self._recorder.record(
            given_answer=effect.answer,
            correct_answer=effect.stimulus.correct_label,
            stimulus_descriptor=effect.stimulus.describe(),
            ready_at_ms=effect.ready_at_ms,
            answered_at_ms=effect.answered_at_ms,
            answered_at_epoch_ms=self._clock.epoch_ms(),
        )
        self._feedback = rec.is_correct
        self._arm(machine.FEEDBACK, config.FEEDBACK_FLASH_MS)
        if self._on_trial is not None:
            self._on_trial(effect.section_id, rec)

    def _seal(self, section_id: str) -> None:
        trials = list(self._recorder.trials)
        result = SectionResult(
            section_id=section_id,
            started_at_epoch_ms=self._section_started_at,
            ended_at_epoch_ms=self._clock.epoch_ms(),
            trials=trials,
            summary=summarize(trials),
        )
        if section_id == config.STROOP:
            self._stroop_result = result
        else:
            self._crt_results.append(result)
        s = result.summary
        logging.exp(
            f"Section {section_id} sealed: n={s.count}  acc={s.accuracy:.3f}  "
            f"mean_rt={s.mean_rt_ms:.0f} ms  median_rt={s.median_rt_ms:.0f} ms  errors={s.errors}"
        )
        if self._on_section is not None:
            self._on_section(result)

    def _complete(self) -> None:
        if self._saved:
            return
        self._saved = True
        self._session = TestSession(
            id=str(uuid.uuid4()),
            created_at_epoch_ms=self._clock.epoch_ms(),
            format_version=config.FORMAT_VERSION,
            crt_sections=list(self._crt_results),
            stroop_section=self._stroop_result,
        )
        logging.exp(f"Session {self._session.id} complete: {len(self.sections)} sections")
        if self._session_log is not None:
            self._session_log.add(self._session)
        if self._on_complete is not None:
            self._on_complete(self._session)


def label_for_key(key: str, labels: tuple[str, ...]) -> Optional[str]:
    """Map a key name to a response label for the current section, or None."""
    if len(labels) == 2:
        if key == config.KEYS_CRT["left"]:
            return labels[0]
        if key == config.KEYS_CRT["right"]:
            return labels[1]
        return None
    if key in config.KEYS_STROOP:
        idx = config.KEYS_STROOP.index(key)
        if idx < len(labels):
            return labels[idx]
    return None
