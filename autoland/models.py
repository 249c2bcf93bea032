"""Read-only snapshots of the GitHub objects the auto-approve/merge jobs consume.

Every class here is built from the JSON the GitHub REST API returns, via a
``from_api`` classmethod.  The jobs never mutate these objects; they read them,
decide, and issue at most one write per pull request.

Public API
----------
- ``Mergeability``    -- tri-state mergeable flag (true / false / still computing)
- ``PullRequest``     -- number, title, author, body, head SHA, mergeability
- ``CheckRun``        -- one check-suite job result for a commit
- ``StatusEntry``     -- one legacy commit status
- ``CombinedStatus``  -- aggregate legacy status for a commit
- ``Review``          -- one pull-request review
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PASSING_CONCLUSIONS: frozenset[str] = frozenset({"success", "skipped", "neutral"})
APPROVED = "APPROVED"
DEFAULT_BOT_LOGIN = "github-actions[bot]"


def _login(user: dict[str, Any] | None) -> str | None:
    if not user:
        return None  # deleted ("ghost") accounts come back as null
    return user.get("login")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class Mergeability(Enum):
    """GitHub's ``mergeable`` flag, with the ``null`` case made explicit."""

    MERGEABLE = "mergeable"
    CONFLICTING = "conflicting"
    UNKNOWN = "unknown"

    @classmethod
    def from_api(cls, value: bool | None) -> "Mergeability":
        if value is True:
            return cls.MERGEABLE
        if value is False:
            return cls.CONFLICTING
        return cls.UNKNOWN


@dataclass(frozen=True)
class PullRequest:
    """An open pull request as listed (or fetched) from the API."""

    number: int
    title: str
    author: str | None
    head_sha: str
    body: str = ""
    mergeability: Mergeability = Mergeability.UNKNOWN

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        return cls(
            number=int(data["number"]),
            title=data.get("title") or "",
            author=_login(data.get("user")),
            head_sha=(data.get("head") or {}).get("sha", ""),
            body=data.get("body") or "",
            # The list endpoint omits "mergeable"; treat it as not yet computed.
            mergeability=Mergeability.from_api(data.get("mergeable")),
        )

    @property
    def squash_title(self) -> str:
        return f"{self.title} (#{self.number})"


@dataclass(frozen=True)
class CheckRun:
    """A single named CI job result reported against a commit."""

    name: str
    status: str = "completed"
    conclusion: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CheckRun":
        return cls(
            name=data.get("name", ""),
            status=data.get("status") or "",
            conclusion=data.get("conclusion"),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def passed(self) -> bool:
        return self.conclusion in PASSING_CONCLUSIONS


@dataclass(frozen=True)
class StatusEntry:
    context: str
    state: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "StatusEntry":
        return cls(context=data.get("context", ""), state=data.get("state", ""))


@dataclass(frozen=True)
class CombinedStatus:
    """Aggregate of every status-API reporter for one commit.

    GitHub reports ``pending`` when a commit has no statuses at all, so
    ``state`` alone is not meaningful without looking at ``statuses``.
    """

    state: str
    statuses: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CombinedStatus":
        return cls(
            state=data.get("state", ""),
            statuses=tuple(StatusEntry.from_api(s) for s in data.get("statuses") or []),
        )

    @property
    def is_success(self) -> bool:
        return self.state == "success"


@dataclass(frozen=True)
class Review:
    reviewer: str | None
    state: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Review":
        return cls(reviewer=_login(data.get("user")), state=data.get("state", ""))

    @property
    def is_approval(self) -> bool:
        return self.state == APPROVED
