"""Shared plumbing for the job loops: staged evidence loading and per-PR outcomes."""

from __future__ import annotations

from dataclasses import dataclass, replace

from autoland.github_client import GitHubClient
from autoland.models import PullRequest
from autoland.readiness import CHECKS, DETAIL, REVIEWS, Decision, Evidence, Loader, Verdict

# Outcome actions
APPROVED = "approved"
MERGED = "merged"
SKIPPED = "skipped"
REJECTED = "rejected"
FAILED = "failed"
DRY_RUN = "dry_run"


@dataclass(frozen=True)
class PullOutcome:
    """What a job did with one pull request."""

    pr_number: int
    title: str
    action: str
    reason: str

    @classmethod
    def from_decision(cls, pr: PullRequest, decision: Decision) -> "PullOutcome":
        action = SKIPPED if decision.verdict is Verdict.SKIP else REJECTED
        return cls(pr_number=pr.number, title=pr.title, action=action, reason=decision.reason)

    def to_dict(self) -> dict:
        """Return a dictionary representation of this outcome."""
        return {
            "pr_number": self.pr_number,
            "title": self.title,
            "action": self.action,
            "reason": self.reason,
        }


def evidence_loader(client: GitHubClient) -> Loader:
    """Return a loader that fetches evidence stages from *client* on demand.

    The list endpoint never computes ``mergeable``, so the DETAIL stage
    re-fetches the PR itself; policies ask for it as late as they can.
    """

    def load(evidence: Evidence, stages: frozenset[str]) -> Evidence:
        pr = evidence.pr
        changes: dict = {}
        if DETAIL in stages:
            pr = changes["pr"] = client.get_pull(pr.number)
        if CHECKS in stages:
            changes["check_runs"] = tuple(client.list_check_runs(pr.head_sha))
            changes["combined_status"] = client.get_combined_status(pr.head_sha)
        if REVIEWS in stages:
            changes["reviews"] = tuple(client.list_reviews(pr.number))
        return replace(evidence, loaded=evidence.loaded | stages, **changes)

    return load
