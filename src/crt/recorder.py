"""
Data recording: TrialRecord, SectionSummary, SectionResult, TestSession,
TrialRecorder, summarize(), TrialCsvWriter, write_manifest.
"""
from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import numpy as np


@dataclass(frozen=True)
class TrialRecord:
    index: int
    stimulus: str            # descriptor from Stimulus.describe()
    correct_label: str
    given_answer: str
    is_correct: bool
    reaction_time_ms: float
    answered_at_epoch_ms: int


@dataclass(frozen=True)
class SectionSummary:
    count: int
    accuracy: float
    mean_rt_ms: float        # correct trials only
    median_rt_ms: float      # correct trials only
    errors: int


@dataclass
class SectionResult:
    section_id: str
    started_at_epoch_ms: int
    ended_at_epoch_ms: int
    trials: list[TrialRecord]
    summary: SectionSummary

    @property
    def duration_ms(self) -> int:
        return self.ended_at_epoch_ms - self.started_at_epoch_ms

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SectionResult":
        return cls(
            section_id=str(data["section_id"]),
            started_at_epoch_ms=int(data["started_at_epoch_ms"]),
            ended_at_epoch_ms=int(data["ended_at_epoch_ms"]),
            trials=[TrialRecord(**t) for t in data["trials"]],
            summary=SectionSummary(**data["summary"]),
        )


@dataclass
class TestSession:
    id: str
    created_at_epoch_ms: int
    format_version: str
    crt_sections: list[SectionResult] = field(default_factory=list)
    stroop_section: Optional[SectionResult] = None

    @property
    def sections(self) -> list[SectionResult]:
        return self.crt_sections + ([self.stroop_section] if self.stroop_section else [])

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestSession":
        stroop = data.get("stroop_section")
        return cls(
            id=str(data["id"]),
            created_at_epoch_ms=int(data["created_at_epoch_ms"]),
            format_version=str(data["format_version"]),
            crt_sections=[SectionResult.from_dict(s) for s in data["crt_sections"]],
            stroop_section=SectionResult.from_dict(stroop) if stroop else None,
        )


def summarize(trials: list[TrialRecord]) -> SectionSummary:
    """
    Accuracy over all trials; mean and median RT over correct trials only.
    Empty inputs give zeros rather than NaN.
    """
    count = len(trials)
    rts = [t.reaction_time_ms for t in trials if t.is_correct]
    n_correct = len(rts)
    return SectionSummary(
        count=count,
        accuracy=n_correct / count if count else 0.0,
        mean_rt_ms=float(np.mean(rts)) if rts else 0.0,
        median_rt_ms=float(np.median(rts)) if rts else 0.0,
        errors=count - n_correct,
    )


class TrialRecorder:
    """Builds TrialRecords and appends them to the in-progress section list."""

    def __init__(self) -> None:
        self.trials: list[TrialRecord] = []

    def reset(self) -> None:
        self.trials = []

    def record(
        self,
        given_answer: str,
        correct_answer: str,
        stimulus_descriptor: str,
        ready_at_ms: float,
        answered_at_ms: float,
        answered_at_epoch_ms: int,
    ) -> TrialRecord:
        rec = TrialRecord(
            index=len(self.trials),
            stimulus=stimulus_descriptor,
            correct_label=correct_answer,
            given_answer=given_answer,
            is_correct=given_answer == correct_answer,
            reaction_time_ms=max(0.0, float(answered_at_ms - ready_at_ms)),
            answered_at_epoch_ms=int(answered_at_epoch_ms),
        )
        self.trials.append(rec)
        return rec


TRIAL_COLUMNS: list[str] = [
    "section", "index", "stimulus", "correct_label", "given_answer",
    "is_correct", "reaction_time_ms", "answered_at_epoch_ms",
]


class TrialCsvWriter:
    """Writes one row per trial and flushes so completed trials survive a crash."""

    def __init__(self, path: Path) -> None:
        self._file = open(path, "w", newline="", encoding="utf-8")
        self._writer = csv.DictWriter(self._file, fieldnames=TRIAL_COLUMNS)
        self._writer.writeheader()

    def append(self, section_id: str, record: TrialRecord) -> None:
        row = {"section": section_id, **asdict(record)}
        row["is_correct"] = int(record.is_correct)
        row["reaction_time_ms"] = round(record.reaction_time_ms, 2)
        self._writer.writerow(row)
        self._file.flush()

    def close(self) -> None:
        self._file.close()


def write_manifest(
    run_dir: Path,
    participant_id: str,
    session_time: datetime,
    frame_rate: float,
) -> None:
    from crt import __version__
    from crt.config import (
        AXIS_VARIANT,
        CRT_ORDER,
        CRT_TRIALS,
        FORMAT_VERSION,
        PRESENTATION_DELAY_MS,
        STROOP_DURATION_S,
        STROOP_NOMINAL_TRIALS,
        STROOP_POOL_FACTOR,
    )

    manifest = {
        "crt_task_version": __version__,
        "format_version": FORMAT_VERSION,
        "participant_id": participant_id,
        "session_time": session_time.isoformat(timespec="seconds"),
        "frame_rate_hz": round(frame_rate, 3),
        "task_params": {
            "crt_order": CRT_ORDER,
            "crt_trials": CRT_TRIALS,
            "axis_variant": AXIS_VARIANT,
            "presentation_delay_ms": PRESENTATION_DELAY_MS,
            "stroop_duration_s": STROOP_DURATION_S,
            "stroop_nominal_trials": STROOP_NOMINAL_TRIALS,
            "stroop_pool_size": STROOP_NOMINAL_TRIALS * STROOP_POOL_FACTOR,
        },
    }
    with open(run_dir / "manifest.json", "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)
