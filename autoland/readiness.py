"""CI-readiness decision engine for auto-approval and auto-merge.

This module is side-effect free: it never talks to GitHub.  Callers hand over
the evidence for one pull request (check runs, combined status, reviews, and
the pull request itself), or a loader that fetches it stage by stage, and ask
a *policy* whether the pull request is ready.

A policy is an ordered tuple of gates.  Each gate inspects the evidence and
returns a :class:`Decision`; a ``READY`` decision from a gate means "this
condition holds" and its reason is appended to the trail, anything else stops
evaluation.  Gates declare the evidence stages they read with :func:`needs`,
so a pull request that fails early is never fetched further.  Both shipped
policies share the same mergeability, check-run and combined-status gates.

Public API
----------
- ``Verdict``, ``Decision``          -- outcome plus human-readable reason trail
- ``Evidence``, ``PolicyContext``    -- inputs to a policy
- ``CHECKS``, ``REVIEWS``, ``DETAIL`` -- evidence stages; ``needs`` marks a gate
- ``Policy``, ``evaluate``           -- gate pipeline
- ``APPROVAL_POLICY`` / ``approval_decision(evidence, ctx)``
- ``MERGE_POLICY`` / ``merge_decision(evidence)``
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Iterable

from autoland.models import (
    DEFAULT_BOT_LOGIN,
    CheckRun,
    CombinedStatus,
    Mergeability,
    PullRequest,
    Review,
)

APPROVAL_MESSAGE = (
    "✅ Auto-approved: PR author is authorized, all CI checks passed, "
    "and no merge conflicts detected."
)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class Verdict(Enum):
    READY = "ready"
    SKIP = "skip"  # not ready yet; a later run may succeed
    REJECT = "reject"


@dataclass(frozen=True)
class Decision:
    """Outcome of evaluating a policy (or a single gate) for one PR."""

    verdict: Verdict
    reason: str
    trail: tuple[str, ...] = ()

    @property
    def ready(self) -> bool:
        return self.verdict is Verdict.READY


def passed(reason: str) -> Decision:
    return Decision(Verdict.READY, reason)


def skip(reason: str) -> Decision:
    return Decision(Verdict.SKIP, reason)


def reject(reason: str) -> Decision:
    return Decision(Verdict.REJECT, reason)


# Evidence stages: what a gate has to read before it can decide.
CHECKS = "checks"  # check runs and combined status for the head commit
REVIEWS = "reviews"
DETAIL = "detail"  # the PR re-fetched on its own, with ``mergeable`` computed
ALL_STAGES: frozenset[str] = frozenset({CHECKS, REVIEWS, DETAIL})


@dataclass(frozen=True)
class Evidence:
    """Everything the platform told us about one pull request.

    ``loaded`` names the stages that are filled in.  Evidence built directly
    is complete; :meth:`listed` starts from the listing payload alone so a
    loader can fetch each stage only when a gate first needs it.
    """

    pr: PullRequest
    check_runs: tuple[CheckRun, ...] = ()
    combined_status: CombinedStatus = field(default_factory=lambda: CombinedStatus(state="pending"))
    reviews: tuple[Review, ...] = ()
    loaded: frozenset[str] = ALL_STAGES

    @classmethod
    def listed(cls, pr: PullRequest) -> "Evidence":
        return cls(pr=pr, loaded=frozenset())

    @classmethod
    def build(
        cls,
        pr: PullRequest,
        check_runs: Iterable[CheckRun] = (),
        combined_status: CombinedStatus | None = None,
        reviews: Iterable[Review] = (),
    ) -> "Evidence":
        return cls(
            pr=pr,
            check_runs=tuple(check_runs),
            combined_status=combined_status or CombinedStatus(state="pending"),
            reviews=tuple(reviews),
        )


@dataclass(frozen=True)
class PolicyContext:
    """Per-run inputs that are not part of the PR itself."""

    authorized_users: frozenset[str] = frozenset()
    bot_login: str = DEFAULT_BOT_LOGIN


Gate = Callable[[Evidence, PolicyContext], Decision]
Loader = Callable[[Evidence, frozenset[str]], Evidence]


def needs(*stages: str) -> Callable[[Gate], Gate]:
    """Declare the evidence stages a gate reads."""

    def mark(gate: Gate) -> Gate:
        gate.needs = frozenset(stages)  # type: ignore[attr-defined]
        return gate

    return mark


@dataclass(frozen=True)
class Policy:
    name: str
    gates: tuple[Gate, ...]
    ready_message: str


def evaluate(
    policy: Policy,
    evidence: Evidence,
    ctx: PolicyContext | None = None,
    load: Loader | None = None,
) -> Decision:
    """Run *policy*'s gates in order, stopping at the first one that fails.

    When a gate needs a stage that *evidence* has not loaded yet, *load* is
    asked for it first, so gates after a failure never cost an API call.
    Without a loader the evidence must already hold every stage it needs.
    """
    if ctx is None:
        ctx = PolicyContext()
    trail: list[str] = []
    for gate in policy.gates:
        missing = getattr(gate, "needs", frozenset()) - evidence.loaded
        if missing:
            if load is None:
                raise ValueError(f"{gate.__name__} needs evidence not loaded: {', '.join(sorted(missing))}")
            evidence = load(evidence, missing)
        decision = gate(evidence, ctx)
        if not decision.ready:
            return replace(decision, trail=tuple(trail))
        trail.append(decision.reason)
    return Decision(Verdict.READY, policy.ready_message, tuple(trail))


# ---------------------------------------------------------------------------
# Shared gates
# ---------------------------------------------------------------------------


def _describe(runs: Iterable[CheckRun]) -> str:
    return ", ".join(f"{r.name} ({r.status}/{r.conclusion})" for r in runs)


@needs(DETAIL)
def gate_mergeable(evidence: Evidence, ctx: PolicyContext) -> Decision:
    pr = evidence.pr
    if pr.mergeability is Mergeability.CONFLICTING:
        return reject(f"PR #{pr.number} has merge conflicts")
    if pr.mergeability is Mergeability.UNKNOWN:
        return skip(f"PR #{pr.number} merge status not yet computed, skipping for now")
    return passed("No merge conflicts")


@needs(CHECKS)
def gate_combined_status(evidence: Evidence, ctx: PolicyContext) -> Decision:
    status = evidence.combined_status
    # With no legacy statuses reported GitHub says "pending"; only real
    # status entries can fail this gate.
    if status.statuses and not status.is_success:
        return reject(f"Combined status is not success: {status.state}")
    return passed("Combined status passed")


# ---------------------------------------------------------------------------
# Approval gates
# ---------------------------------------------------------------------------


def gate_authorized_author(evidence: Evidence, ctx: PolicyContext) -> Decision:
    author = evidence.pr.author
    if author not in ctx.authorized_users:
        return reject(f"Author {author} is not in authorized list")
    return passed("Author is authorized")


@needs(CHECKS)
def gate_has_ci_signal(evidence: Evidence, ctx: PolicyContext) -> Decision:
    if not evidence.check_runs and not evidence.combined_status.statuses:
        return skip("No CI checks found, skipping")
    return passed("CI checks found")


@needs(CHECKS)
def gate_check_conclusions(evidence: Evidence, ctx: PolicyContext) -> Decision:
    failing = [r for r in evidence.check_runs if not r.passed]
    if failing:
        return reject(f"Not all check runs passed: {_describe(failing)}")
    return passed("All check runs passed")


@needs(REVIEWS)
def gate_not_already_approved(evidence: Evidence, ctx: PolicyContext) -> Decision:
    if any(r.reviewer == ctx.bot_login and r.is_approval for r in evidence.reviews):
        return skip("Already approved by this workflow")
    return passed("Not yet approved by this workflow")


# ---------------------------------------------------------------------------
# Merge gates
# ---------------------------------------------------------------------------


@needs(REVIEWS)
def gate_has_approval(evidence: Evidence, ctx: PolicyContext) -> Decision:
    if not any(r.is_approval for r in evidence.reviews):
        return skip(f"PR #{evidence.pr.number} does not have approval, skipping")
    return passed("PR has approval")


@needs(CHECKS)
def gate_checks_completed(evidence: Evidence, ctx: PolicyContext) -> Decision:
    runs = evidence.check_runs
    pending = [r for r in runs if not r.is_completed]
    if pending:
        return skip(f"PR #{evidence.pr.number} has pending check runs: {_describe(pending)}")
    failing = [r for r in runs if not r.passed]
    if failing:
        return reject(f"PR #{evidence.pr.number} has failing check runs: {_describe(failing)}")
    return passed("All checks passed")


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------

APPROVAL_POLICY = Policy(
    name="approve",
    gates=(
        gate_authorized_author,
        gate_mergeable,
        gate_has_ci_signal,
        gate_check_conclusions,
        gate_combined_status,
        gate_not_already_approved,
    ),
    ready_message="All conditions met, ready to approve",
)

# Mergeability goes last so the DETAIL re-fetch happens right before acting.
MERGE_POLICY = Policy(
    name="merge",
    gates=(
        gate_has_approval,
        gate_checks_completed,
        gate_combined_status,
        gate_mergeable,
    ),
    ready_message="All conditions met, ready to merge",
)

POLICIES: dict[str, Policy] = {p.name: p for p in (APPROVAL_POLICY, MERGE_POLICY)}


def approval_decision(evidence: Evidence, ctx: PolicyContext, load: Loader | None = None) -> Decision:
    """Decide whether the automation should approve ``evidence.pr``."""
    return evaluate(APPROVAL_POLICY, evidence, ctx, load)


def merge_decision(
    evidence: Evidence,
    ctx: PolicyContext | None = None,
    load: Loader | None = None,
) -> Decision:
    """Decide whether ``evidence.pr`` can be squash-merged.

    ``evidence.pr`` must carry the mergeability fetched immediately before
    acting (the DETAIL stage); the listing endpoint does not compute it.
    """
    return evaluate(MERGE_POLICY, evidence, ctx, load)
