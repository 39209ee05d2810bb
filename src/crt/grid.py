"""
3x3 boolean grid primitives used by the two grid CRT sections.
Cells are a 9-slot row-major sequence; index = row * 3 + col.
"""
from __future__ import annotations

from collections import deque
from typing import Sequence

SIZE = 3
N_CELLS = SIZE * SIZE

Cells = tuple[bool, ...]


def _check(cells: Sequence[bool]) -> None:
    if len(cells) != N_CELLS:
        raise ValueError(f"Grid must have {N_CELLS} cells; got {len(cells)}")


def neighbours(idx: int) -> list[int]:
    """4-neighbour indices of idx (no diagonals, no wraparound)."""
    r, c = divmod(idx, SIZE)
    out: list[int] = []
    if r > 0:
        out.append(idx - SIZE)
    if r < SIZE - 1:
        out.append(idx + SIZE)
    if c > 0:
        out.append(idx - 1)
    if c < SIZE - 1:
        out.append(idx + 1)
    return out


def is_connected(cells: Sequence[bool]) -> bool:
    """True iff every filled cell is reachable from every other one."""
    _check(cells)
    filled = [i for i, v in enumerate(cells) if v]
    if len(filled) <= 1:
        return True
    seen = {filled[0]}
    queue = deque([filled[0]])
    while queue:
        cur = queue.popleft()
        for n in neighbours(cur):
            if cells[n] and n not in seen:
                seen.add(n)
                queue.append(n)
    return len(seen) == len(filled)


def mirror_vertical(cells: Sequence[bool]) -> Cells:
    """Reflect across the vertical centre axis (left <-> right)."""
    _check(cells)
    return tuple(cells[r * SIZE + (SIZE - 1 - c)] for r in range(SIZE) for c in range(SIZE))


def mirror_horizontal(cells: Sequence[bool]) -> Cells:
    """Reflect across the horizontal centre axis (top <-> bottom)."""
    _check(cells)
    return tuple(cells[(SIZE - 1 - r) * SIZE + c] for r in range(SIZE) for c in range(SIZE))


def encode_cells(cells: Sequence[bool]) -> str:
    return "".join("1" if v else "0" for v in cells)


def decode_cells(code: str) -> Cells:
    if len(code) != N_CELLS or set(code) - {"0", "1"}:
        raise ValueError(f"Not a grid encoding: {code!r}")
    return tuple(ch == "1" for ch in code)


def filled_count(cells: Sequence[bool]) -> int:
    return sum(1 for v in cells if v)


def full_column(col: int) -> Cells:
    return tuple(i % SIZE == col for i in range(N_CELLS))


def full_row(row: int) -> Cells:
    return tuple(i // SIZE == row for i in range(N_CELLS))
