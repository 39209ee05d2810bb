"""
PsychoPy visual component construction and draw helpers.
No clocks, no response logic, no I/O.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from psychopy import visual

from crt import config, grid
from crt.stimuli import (
    ArrowAngleStimulus,
    ArrowPositionStimulus,
    GridStimulus,
    NumberStimulus,
    Stimulus,
    StroopStimulus,
    WordStimulus,
)

ARROW_VERTICES = [
    (-0.015, -0.12), (0.015, -0.12), (0.015, 0.05), (0.05, 0.05),
    (0.0, 0.12), (-0.05, 0.05), (-0.015, 0.05),
]
HALF_OFFSET = 0.25           # arrow y for top/bottom half, height units
CELL_SIZE = 0.09
CELL_PITCH = 0.1


@dataclass
class Stimuli:
    win: visual.Window
    word: visual.TextStim
    arrow: visual.ShapeStim
    cells: list[visual.Rect]
    label_left: visual.TextStim
    label_right: visual.TextStim
    color_keys: visual.TextStim
    message: visual.TextStim
    footer: visual.TextStim
    countdown: visual.TextStim
    feedback: visual.TextStim
    end: visual.TextStim


def build_stimuli(win: visual.Window) -> Stimuli:
    """Construct all visual stimuli and return a Stimuli dataclass."""
    y_scr = 1.0
    win_res = win.size
    x_scr = float(win_res[0]) / float(win_res[1])
    font_h = y_scr / 25
    wrap_w = x_scr / 1.5
    text_col = "white"

    word = visual.TextStim(
        win, name="word", font="Arial", pos=(0, 0), height=font_h * 2.5, color=text_col,
        wrapWidth=wrap_w, autoLog=False,
    )

    arrow = visual.ShapeStim(
        win, name="arrow", vertices=ARROW_VERTICES, fillColor=text_col, lineColor=text_col,
        closeShape=True, pos=(0, 0), autoLog=False,
    )

    cells = []
    for i in range(grid.N_CELLS):
        r, c = divmod(i, grid.SIZE)
        cells.append(visual.Rect(
            win, name=f"cell{i}", width=CELL_SIZE, height=CELL_SIZE,
            pos=((c - 1) * CELL_PITCH, (1 - r) * CELL_PITCH),
            lineColor=text_col, fillColor=None, autoLog=False,
        ))

    label_left = visual.TextStim(
        win, name="label_left", font="Arial", pos=(-x_scr / 4, -y_scr / 2.6),
        height=font_h, color=text_col, autoLog=False,
    )
    label_right = visual.TextStim(
        win, name="label_right", font="Arial", pos=(x_scr / 4, -y_scr / 2.6),
        height=font_h, color=text_col, autoLog=False,
    )
    color_keys = visual.TextStim(
        win, name="color_keys", font="Arial", pos=(0, -y_scr / 2.6),
        text="   ".join(f"{i + 1} {name}" for i, (name, _) in enumerate(config.STROOP_COLORS)),
        height=font_h, color=text_col, wrapWidth=wrap_w * 1.3, autoLog=False,
    )

    message = visual.TextStim(
        win, name="message", font="Arial", pos=(0, y_scr / 10),
        height=font_h, wrapWidth=wrap_w, color=text_col, autoLog=False,
    )
    footer = visual.TextStim(
        win, name="footer", font="Arial", pos=(0, -y_scr / 4), text=config.INSTRUCTIONS_FOOTER,
        height=font_h * 0.8, wrapWidth=wrap_w, color=text_col, autoLog=False,
    )
    countdown = visual.TextStim(
        win, name="countdown", font="Arial", pos=(x_scr / 2.5, y_scr / 2.3),
        height=font_h, color=text_col, autoLog=False,
    )
    feedback = visual.TextStim(
        win, name="feedback", font="Arial", pos=(0, y_scr / 3.5),
        height=font_h, color="green", autoLog=False,
    )
    end = visual.TextStim(
        win, name="end", pos=(0, 0), text="Дууслаа. Баярлалаа!", height=font_h, color=text_col,
        wrapWidth=wrap_w, autoLog=False,
    )

    return Stimuli(
        win=win,
        word=word,
        arrow=arrow,
        cells=cells,
        label_left=label_left,
        label_right=label_right,
        color_keys=color_keys,
        message=message,
        footer=footer,
        countdown=countdown,
        feedback=feedback,
        end=end,
    )


def draw_stimulus(stimuli: Stimuli, stim: Stimulus) -> None:
    if isinstance(stim, (WordStimulus, NumberStimulus)):
        stimuli.word.text = stim.text
        stimuli.word.color = "white"
        stimuli.word.draw()
    elif isinstance(stim, ArrowAngleStimulus):
        stimuli.arrow.pos = (0, 0)
        stimuli.arrow.ori = stim.angle_deg
        stimuli.arrow.draw()
    elif isinstance(stim, ArrowPositionStimulus):
        y = HALF_OFFSET if stim.vertical_half == "top" else -HALF_OFFSET
        stimuli.arrow.pos = (0, y)
        stimuli.arrow.ori = stim.angle_deg
        stimuli.arrow.draw()
    elif isinstance(stim, GridStimulus):
        for rect, filled in zip(stimuli.cells, stim.cells):
            rect.fillColor = "white" if filled else None
            rect.draw()
    elif isinstance(stim, StroopStimulus):
        stimuli.word.text = stim.word
        stimuli.word.color = stim.ink
        stimuli.word.draw()


def draw_labels(stimuli: Stimuli, labels: Sequence[str]) -> None:
    if len(labels) == 2:
        stimuli.label_left.text = f"← {labels[0]}"
        stimuli.label_right.text = f"{labels[1]} →"
        stimuli.label_left.draw()
        stimuli.label_right.draw()
    elif labels:
        stimuli.color_keys.draw()


def draw_message(stimuli: Stimuli, text: str, footer: bool = False) -> None:
    stimuli.message.text = text
    stimuli.message.draw()
    if footer:
        stimuli.footer.draw()


def draw_countdown(stimuli: Stimuli, remaining_s: int) -> None:
    stimuli.countdown.text = f"{remaining_s} s"
    stimuli.countdown.draw()


def draw_feedback(stimuli: Stimuli, correct: Optional[bool]) -> None:
    if correct is None:
        return
    if correct:
        stimuli.feedback.text = "Зөв"
        stimuli.feedback.color = "green"
    else:
        stimuli.feedback.text = "Буруу"
        stimuli.feedback.color = "red"
    stimuli.feedback.draw()
