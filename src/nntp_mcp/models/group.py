"""Newsgroup status model."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Group:
    """Snapshot of a single newsgroup.

    ``low <= high`` is not enforced and ``count`` may disagree with
    ``high - low + 1``; servers are lax about both. ``status`` is the raw
    posting token (typically ``y``, ``n`` or ``m``) when the response
    carries one, otherwise an empty string.
    """

    name: str
    high: int
    low: int
    count: int = 0
    status: str = ""

    def to_dict(self) -> dict:
        return asdict(self)
