"""
Session initialisation: dialog, screen setup and output directory.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pyglet
from psychopy import core, gui, monitors, visual

from crt import config


@dataclass
class SessionInfo:
    show_instructions: bool
    submit: bool
    submit_url: str
    data_dir: Path


def _yes(value) -> bool:
    return str(value).strip().lower() == "yes"


def show_dialog() -> SessionInfo:
    """Present the startup dialog and return a SessionInfo."""
    fields = {
        "Show instructions? (yes/no)": "yes",
        "Submit results? (yes/no)": "yes",
        "Submission URL": config.SUBMIT_URL,
        "Data directory": "data",
    }
    dlg = gui.DlgFromDict(dictionary=fields, title="CRT + Stroop")
    if not dlg.OK:
        core.quit()
    return session_info_from_fields(fields)


def session_info_from_fields(fields: dict) -> SessionInfo:
    url = str(fields.get("Submission URL", "")).strip() or config.SUBMIT_URL
    data_dir = str(fields.get("Data directory", "")).strip() or "data"
    return SessionInfo(
        show_instructions=_yes(fields.get("Show instructions? (yes/no)", "yes")),
        submit=_yes(fields.get("Submit results? (yes/no)", "yes")),
        submit_url=url,
        data_dir=Path(data_dir),
    )


def setup_screen() -> tuple[list[int], visual.Window]:
    """Create and return (win_res, win)."""
    display = pyglet.canvas.get_display()
    screens = display.get_screens()
    win_res = [screens[-1].width, screens[-1].height]
    exp_mon = monitors.Monitor("exp_mon")
    exp_mon.setSizePix(win_res)
    win = visual.Window(
        size=win_res,
        screen=len(screens) - 1,
        allowGUI=True,
        fullscr=True,
        monitor=exp_mon,
        units="height",
        color=(-0.8, -0.8, -0.75),
    )
    return win_res, win


def make_run_dir(data_dir: Path, participant_id: str, session_time: datetime) -> Path:
    """Create and return data/{participant_id}_{YYYYMMDDTHHMMSS}/."""
    ts = session_time.strftime("%Y%m%dT%H%M%S")
    run_dir = Path(data_dir) / f"{participant_id}_{ts}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir
