"""
Session history: overview numbers, trial tables and the `crt-history` CLI
(list / show / export / clear) over the local session log.
"""
from __future__ import annotations

import argparse
import sys
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd
import rich.box
from rich.console import Console
from rich.table import Table

from crt import config
from crt.recorder import TRIAL_COLUMNS, TestSession
from crt.storage import SessionLog
from crt.submit import AggregateClient, crt_averages


@dataclass(frozen=True)
class SessionOverview:
    crt_accuracy: float
    crt_mean_rt_ms: float
    stroop_accuracy: Optional[float]
    stroop_mean_rt_ms: Optional[float]
    total_trials: int
    total_time_ms: int


def session_overview(session: TestSession) -> SessionOverview:
    crt_acc, crt_rt = crt_averages(session.crt_sections)
    stroop = session.stroop_section.summary if session.stroop_section else None
    sections = session.sections
    return SessionOverview(
        crt_accuracy=crt_acc,
        crt_mean_rt_ms=crt_rt,
        stroop_accuracy=stroop.accuracy if stroop else None,
        stroop_mean_rt_ms=stroop.mean_rt_ms if stroop else None,
        total_trials=sum(len(s.trials) for s in sections),
        total_time_ms=sum(s.duration_ms for s in sections),
    )


def trials_frame(session: TestSession) -> pd.DataFrame:
    """One row per trial across every section, in presentation order."""
    rows = [
        {"section": section.section_id, **asdict(trial)}
        for section in session.sections
        for trial in section.trials
    ]
    return pd.DataFrame(rows, columns=TRIAL_COLUMNS)


def sections_frame(session: TestSession) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "section": s.section_id,
                "duration_ms": s.duration_ms,
                **asdict(s.summary),
            }
            for s in session.sections
        ]
    )


def _fmt_date(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M")


def _fmt_pct(value: Optional[float]) -> str:
    return "—" if value is None else f"{value * 100:.1f}%"


def _fmt_ms(value: Optional[float]) -> str:
    return "—" if value is None else f"{round(value)} ms"


def render_list(console: Console, sessions: Sequence[TestSession]) -> None:
    if not sessions:
        console.print("No saved sessions.")
        return
    table = Table(box=rich.box.SIMPLE_HEAD, title=f"Saved sessions: {len(sessions)}")
    table.add_column("Date")
    table.add_column("ID")
    table.add_column("CRT acc", justify="right")
    table.add_column("CRT RT", justify="right")
    table.add_column("Stroop acc", justify="right")
    table.add_column("Stroop RT", justify="right")
    for s in sessions:
        ov = session_overview(s)
        table.add_row(
            _fmt_date(s.created_at_epoch_ms),
            s.id,
            _fmt_pct(ov.crt_accuracy),
            _fmt_ms(ov.crt_mean_rt_ms),
            _fmt_pct(ov.stroop_accuracy),
            _fmt_ms(ov.stroop_mean_rt_ms),
        )
    console.print(table)


def render_session(console: Console, session: TestSession, with_trials: bool = False) -> None:
    ov = session_overview(session)
    console.print(
        f"[bold]Session[/bold] [cyan]{session.id}[/cyan]  {_fmt_date(session.created_at_epoch_ms)}  "
        f"trials=[cyan]{ov.total_trials}[/cyan]  time=[cyan]{_fmt_ms(ov.total_time_ms)}[/cyan]"
    )
    table = Table(box=rich.box.SIMPLE_HEAD)
    for col in ("Section", "Trials", "Acc", "Mean RT", "Median RT", "Errors", "Time"):
        table.add_column(col, justify="left" if col == "Section" else "right")
    for s in session.sections:
        sm = s.summary
        table.add_row(
            s.section_id, str(sm.count), _fmt_pct(sm.accuracy), _fmt_ms(sm.mean_rt_ms),
            _fmt_ms(sm.median_rt_ms), str(sm.errors), _fmt_ms(s.duration_ms),
        )
    console.print(table)

    if with_trials:
        trials = Table(box=rich.box.SIMPLE_HEAD)
        for col in ("#", "Section", "Stimulus", "Correct", "Answer", "Result", "RT"):
            trials.add_column(col)
        for _, row in trials_frame(session).iterrows():
            stim = "grid" if str(row["stimulus"]).startswith("grid:") else str(row["stimulus"])
            trials.add_row(
                str(int(row["index"]) + 1), row["section"], stim, row["correct_label"],
                row["given_answer"],
                "[green]Зөв[/green]" if row["is_correct"] else "[red]Буруу[/red]",
                _fmt_ms(row["reaction_time_ms"]),
            )
        console.print(trials)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect saved CRT + Stroop sessions.")
    parser.add_argument(
        "--data-dir", type=Path, default=Path("data"),
        help="Directory holding the session log (default: %(default)s).",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List saved sessions, newest first.")
    show = sub.add_parser("show", help="Show one session's section summaries.")
    show.add_argument("session_id")
    show.add_argument("--trials", action="store_true", help="Also list every trial.")
    export = sub.add_parser("export", help="Write one session's trials to CSV.")
    export.add_argument("session_id")
    export.add_argument("output", type=Path)
    sub.add_parser("clear", help="Delete the whole session log.")
    stats = sub.add_parser("stats", help="Show the remote aggregate statistics.")
    stats.add_argument("--url", default=config.SUBMIT_URL, help="Service base URL (default: %(default)s).")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    console = Console()
    log = SessionLog(args.data_dir)

    if args.command == "list":
        render_list(console, log.load())
        return 0

    if args.command == "stats":
        data = AggregateClient(args.url).fetch_stats()
        if data is None:
            console.print(f"[red]Could not fetch statistics from {args.url}[/red]")
            return 1
        table = Table(box=rich.box.SIMPLE_HEAD)
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        for key, value in data.items():
            table.add_row(str(key), "—" if value is None else str(value))
        console.print(table)
        return 0

    if args.command == "clear":
        log.clear()
        console.print("Session log cleared.")
        return 0

    session = log.get(args.session_id)
    if session is None:
        console.print(f"[red]No session with id {args.session_id}[/red]")
        return 1

    if args.command == "show":
        render_session(console, session, with_trials=args.trials)
    else:
        trials_frame(session).to_csv(args.output, index=False)
        console.print(f"Wrote {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
