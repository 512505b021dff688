"""Overview (XOVER) record model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class MessageOverview:
    """Summary of one article as returned by XOVER."""

    message_number: int
    subject: str = ""
    from_: str = ""
    date: datetime | None = None  # None when missing or unparseable
    message_id: str = ""
    references: list[str] = field(default_factory=list)
    bytes: int = 0
    lines: int = 0
    extra: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "message_number": self.message_number,
            "subject": self.subject,
            "from": self.from_,
            "date": self.date.isoformat() if self.date else None,
            "message_id": self.message_id,
            "references": list(self.references),
            "bytes": self.bytes,
            "lines": self.lines,
            "extra": list(self.extra),
        }
