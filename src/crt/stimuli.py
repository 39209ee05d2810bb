"""
Stimulus types and generators for the eight CRT sections and the Stroop task.
Generators are pure given the RandomSource; nothing here draws or times.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, Hashable, Optional, TypeVar, Union

from psychopy import logging

from crt import config, grid
from crt.rng import RandomSource, default_source, shuffle, uniform_from_ranges

T = TypeVar("T")


@dataclass(frozen=True)
class WordStimulus:
    kind: ClassVar[str] = "word"
    text: str
    correct_label: str

    def describe(self) -> str:
        return self.text


@dataclass(frozen=True)
class NumberStimulus:
    kind: ClassVar[str] = "number"
    text: str
    correct_label: str

    def describe(self) -> str:
        return self.text


@dataclass(frozen=True)
class ArrowAngleStimulus:
    kind: ClassVar[str] = "arrowAngle"
    angle_deg: float
    correct_label: str

    def describe(self) -> str:
        return f"angle:{self.angle_deg:.1f}"


@dataclass(frozen=True)
class ArrowPositionStimulus:
    kind: ClassVar[str] = "arrowPosition"
    angle_deg: float
    vertical_half: str       # "top" | "bottom"
    correct_label: str

    def describe(self) -> str:
        return f"angle:{self.angle_deg:.1f} y:{self.vertical_half}"


@dataclass(frozen=True)
class GridStimulus:
    kind: ClassVar[str] = "grid"
    cells: grid.Cells
    correct_label: str
    predicate_kind: str      # "connectivity" | "axisSymmetry"

    def describe(self) -> str:
        return f"grid:{grid.encode_cells(self.cells)}"


@dataclass(frozen=True)
class StroopStimulus:
    kind: ClassVar[str] = "stroop"
    word: str
    ink: str                 # display colour
    ink_name: str
    condition: str           # "congruent" | "incongruent"

    @property
    def correct_label(self) -> str:
        return self.ink_name

    def describe(self) -> str:
        return f"{self.word}|{self.ink_name}|{self.condition}"


CrtStimulus = Union[WordStimulus, NumberStimulus, ArrowAngleStimulus, ArrowPositionStimulus, GridStimulus]
Stimulus = Union[CrtStimulus, StroopStimulus]


def labels_for(section_id: str) -> tuple[str, ...]:
    """Ordered response labels: (left, right) for CRT, the four colour names for Stroop."""
    if section_id == config.STROOP:
        return tuple(name for name, _ in config.STROOP_COLORS)
    try:
        return config.CRT_LABELS[section_id]
    except KeyError:
        raise ValueError(f"Unknown section: {section_id!r}") from None


# ── sampling helpers ─────────────────────────────────────────────────────────


def _collect_unique(
    count: int,
    draw: Callable[[], Optional[T]],
    key: Callable[[T], Hashable],
    used: set,
    what: str,
) -> list[T]:
    """
    Rejection-sample `count` items. draw() returns None for a predicate
    miss. Past MAX_SAMPLING_ATTEMPTS duplicates are accepted; past
    MAX_TOTAL_SAMPLING_ATTEMPTS the predicate is deemed unsatisfiable.
    """
    out: list[T] = []
    attempts = 0
    relaxed = False
    while len(out) < count:
        attempts += 1
        if attempts > config.MAX_TOTAL_SAMPLING_ATTEMPTS:
            raise ValueError(
                f"{what}: only {len(out)} of {count} items after {attempts - 1} attempts"
            )
        item = draw()
        if item is None:
            continue
        k = key(item)
        if k in used and not relaxed:
            if attempts < config.MAX_SAMPLING_ATTEMPTS:
                continue
            relaxed = True
            logging.warning(
                f"{what}: no unique item after {attempts} attempts; accepting duplicates"
            )
        used.add(k)
        out.append(item)
    return out


def _sample_words(words: list[str], n: int, rng: RandomSource) -> list[str]:
    if n > len(words):
        raise ValueError(f"Requested {n} words from a list of {len(words)}")
    return shuffle(words, rng)[:n]


def unique_numbers(count: int, predicate: Callable[[int], bool], rng: RandomSource) -> list[int]:
    """Distinct 3-digit integers satisfying predicate."""

    def draw() -> Optional[int]:
        n = rng.integers(config.NUMBER_MIN, config.NUMBER_MAX + 1)
        return n if predicate(n) else None

    return _collect_unique(count, draw, lambda n: n, set(), "numbers")


def _angles(
    count: int, ranges: list[tuple[float, float]], used: set, rng: RandomSource, tag: str = ""
) -> list[float]:
    return _collect_unique(
        count,
        lambda: uniform_from_ranges(ranges, rng),
        lambda a: (f"{a:.1f}", tag),
        used,
        "angles",
    )


def _random_subset(rng: RandomSource) -> grid.Cells:
    n_filled = rng.integers(config.GRID_MIN_FILLED, config.GRID_MAX_FILLED + 1)
    chosen = set(shuffle(range(grid.N_CELLS), rng)[:n_filled])
    return tuple(i in chosen for i in range(grid.N_CELLS))


def connectivity_patterns(count: int, connected: bool, rng: RandomSource) -> list[grid.Cells]:
    def draw() -> Optional[grid.Cells]:
        cells = _random_subset(rng)
        return cells if grid.is_connected(cells) == connected else None

    return _collect_unique(count, draw, grid.encode_cells, set(), "connectivity patterns")


def mirror_patterns(count: int, vertical: bool, rng: RandomSource, used: Optional[set] = None) -> list[grid.Cells]:
    """
    Patterns invariant under mirror_vertical (vertical=True) or
    mirror_horizontal: one half is random, the far column/row copies the near one.
    """

    def draw() -> Optional[grid.Cells]:
        cells = [False] * grid.N_CELLS
        for a in range(grid.SIZE):
            for b in range(2):
                idx = a * grid.SIZE + b if vertical else b * grid.SIZE + a
                cells[idx] = rng.random() < 0.5
            if vertical:
                cells[a * grid.SIZE + 2] = cells[a * grid.SIZE]
            else:
                cells[2 * grid.SIZE + a] = cells[a]
        if grid.filled_count(cells) < config.SYMMETRY_MIN_FILLED:
            return None
        return tuple(cells)

    return _collect_unique(
        count, draw, grid.encode_cells, set() if used is None else used, "symmetry patterns"
    )


def line_patterns(count: int, vertical: bool, rng: RandomSource) -> list[grid.Cells]:
    # Only six full rows/columns exist, so repeats are part of the task.
    choices = shuffle([i % grid.SIZE for i in range(count)], rng)
    make = grid.full_column if vertical else grid.full_row
    return [make(i) for i in choices]


# ── per-section builders ─────────────────────────────────────────────────────


def _halves(
    section_id: str, n_left: int, n_right: int, rng: RandomSource, axis_variant: str
) -> tuple[list[CrtStimulus], list[CrtStimulus]]:
    left, right = config.CRT_LABELS[section_id]

    if section_id in ("CRT1", "CRT2"):
        lists = {
            "CRT1": (config.CRT1_PLANTS, config.CRT1_ANIMALS),
            "CRT2": (config.CRT2_ONE_SYLLABLE, config.CRT2_TWO_SYLLABLE),
        }[section_id]
        return (
            [WordStimulus(w, left) for w in _sample_words(lists[0], n_left, rng)],
            [WordStimulus(w, right) for w in _sample_words(lists[1], n_right, rng)],
        )

    if section_id == "CRT3":
        evens = unique_numbers(n_left, lambda n: n % 2 == 0, rng)
        odds = unique_numbers(n_right, lambda n: n % 2 == 1, rng)
        return (
            [NumberStimulus(str(n), left) for n in evens],
            [NumberStimulus(str(n), right) for n in odds],
        )

    if section_id == "CRT4":
        below = unique_numbers(n_left, lambda n: n < config.MAGNITUDE_THRESHOLD, rng)
        above = unique_numbers(n_right, lambda n: n > config.MAGNITUDE_THRESHOLD, rng)
        return (
            [NumberStimulus(str(n), left) for n in below],
            [NumberStimulus(str(n), right) for n in above],
        )

    if section_id == "CRT5":
        used: set = set()
        up = _angles(n_left, config.UP_RANGES_DEG, used, rng)
        down = _angles(n_right, config.DOWN_RANGES_DEG, used, rng)
        return (
            [ArrowAngleStimulus(a, left) for a in up],
            [ArrowAngleStimulus(a, right) for a in down],
        )

    if section_id == "CRT6":
        used = set()
        top = _angles(n_left, config.FULL_CIRCLE_DEG, used, rng, tag="top")
        bottom = _angles(n_right, config.FULL_CIRCLE_DEG, used, rng, tag="bottom")
        return (
            [ArrowPositionStimulus(a, "top", left) for a in top],
            [ArrowPositionStimulus(a, "bottom", right) for a in bottom],
        )

    if section_id == "CRT7":
        return (
            [GridStimulus(c, left, "connectivity") for c in connectivity_patterns(n_left, True, rng)],
            [GridStimulus(c, right, "connectivity") for c in connectivity_patterns(n_right, False, rng)],
        )

    if section_id == "CRT8":
        if axis_variant == "row_column":
            vertical = line_patterns(n_left, True, rng)
            horizontal = line_patterns(n_right, False, rng)
        elif axis_variant == "mirror":
            used = set()
            vertical = mirror_patterns(n_left, True, rng, used)
            horizontal = mirror_patterns(n_right, False, rng, used)
        else:
            raise ValueError(f"Unknown axis variant: {axis_variant!r}")
        return (
            [GridStimulus(c, left, "axisSymmetry") for c in vertical],
            [GridStimulus(c, right, "axisSymmetry") for c in horizontal],
        )

    raise ValueError(f"Unknown CRT section: {section_id!r}")


def generate(
    section_id: str,
    count: int = config.CRT_TRIALS,
    rng: Optional[RandomSource] = None,
    axis_variant: str = config.AXIS_VARIANT,
) -> list[CrtStimulus]:
    """
    Return `count` shuffled stimuli for a CRT section: count // 2 carry the
    left label, the rest the right label.
    """
    if count < 0:
        raise ValueError(f"count must be non-negative; got {count}")
    rng = rng or default_source()
    n_left = count // 2
    first, second = _halves(section_id, n_left, count - n_left, rng, axis_variant)
    return shuffle(first + second, rng)


def generate_stroop(
    total: int = config.STROOP_NOMINAL_TRIALS, rng: Optional[RandomSource] = None
) -> list[StroopStimulus]:
    """Half congruent (word names its ink), half incongruent, shuffled."""
    rng = rng or default_source()
    colors = config.STROOP_COLORS
    half = total // 2
    out: list[StroopStimulus] = []

    for _ in range(half):
        name, ink = colors[rng.integers(0, len(colors))]
        out.append(StroopStimulus(name.upper(), ink, name, "congruent"))

    for _ in range(total - half):
        word_idx = rng.integers(0, len(colors))
        ink_idx = rng.integers(0, len(colors))
        while ink_idx == word_idx:
            ink_idx = rng.integers(0, len(colors))
        name, ink = colors[ink_idx]
        out.append(StroopStimulus(colors[word_idx][0].upper(), ink, name, "incongruent"))

    return shuffle(out, rng)


def stroop_pool(rng: Optional[RandomSource] = None) -> list[StroopStimulus]:
    """Over-provisioned pool for the time-boxed Stroop window."""
    return generate_stroop(config.STROOP_NOMINAL_TRIALS * config.STROOP_POOL_FACTOR, rng)
