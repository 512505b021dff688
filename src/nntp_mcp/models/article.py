"""Article model: a multi-valued header block plus body lines."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..protocol.headers import Headers


@dataclass
class Article:
    """A fetched or to-be-posted article.

    ``body`` is empty for articles fetched with HEAD.
    """

    headers: Headers = field(default_factory=Headers)
    body: list[str] = field(default_factory=list)

    @property
    def message_id(self) -> str | None:
        return self.headers.get("Message-Id")

    @property
    def subject(self) -> str | None:
        return self.headers.get("Subject")

    def to_lines(self) -> list[str]:
        """Render the article as text lines: headers, blank line, body."""
        return self.headers.lines() + [""] + list(self.body)

    def to_dict(self) -> dict:
        return {
            "headers": self.headers.to_dict(),
            "body": "\n".join(self.body),
        }

    def __str__(self) -> str:
        lines = [f"{key}: {','.join(values)}" for key, values in self.headers.items()]
        return "\n".join(lines + [""] + list(self.body))


@dataclass(frozen=True)
class ArticlePointer:
    """Result of STAT, NEXT and LAST: an article number and its message-id.

    ``number`` is 0 when the article is not in the selected group.
    """

    number: int
    message_id: str

    def to_dict(self) -> dict:
        return {"number": self.number, "message_id": self.message_id}
