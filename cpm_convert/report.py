"""Console reporting helpers.

Plain stdout output, with step banners separating the major phases of a
conversion and indented detail lines beneath them.
"""

from __future__ import annotations


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of a conversion in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def echo(msg: str = "") -> None:
    """Print a report line."""
    print(msg)
