"""
ICCMA format — plain-text abstract framework encoding

    p af <n>
    <i> <j>        one line per attack, 1-based argument indices
    # comment      ignored when reading

Arguments are numbered in construction order so the output is
reproducible for identical input.
"""

from __future__ import annotations

from .models import ArgumentationFramework


def serialize_iccma(af: ArgumentationFramework) -> str:
    """Render the framework's distinct defeat edges in ICCMA'23 syntax."""
    lines = [f"p af {af.size}"]
    lines.extend(f"{a + 1} {b + 1}" for a, b in af.edges)
    return "\n".join(lines) + "\n"


def parse_iccma(text: str) -> tuple[int, list[tuple[int, int]]]:
    """
    Read an ICCMA framework. Returns (n, edges) with 1-based edges as
    written in the text.

    Raises ValueError on a missing or malformed header or an index
    outside 1..n.
    """
    size = None
    edges: list[tuple[int, int]] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if size is None:
            if len(parts) != 3 or parts[:2] != ["p", "af"] or not parts[2].isdigit():
                raise ValueError(f"Line {lineno}: expected 'p af <n>', got {line!r}")
            size = int(parts[2])
            continue
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise ValueError(f"Line {lineno}: expected two argument indices, got {line!r}")
        a, b = int(parts[0]), int(parts[1])
        if not (1 <= a <= size and 1 <= b <= size):
            raise ValueError(f"Line {lineno}: index out of range 1..{size}")
        edges.append((a, b))
    if size is None:
        raise ValueError("Missing 'p af <n>' header")
    return size, edges


def framework_from_iccma(text: str) -> ArgumentationFramework:
    """Build an abstract framework from ICCMA text."""
    size, edges = parse_iccma(text)
    return ArgumentationFramework.from_edges(size, [(a - 1, b - 1) for a, b in edges])
