"""Auto-approve open pull requests from allow-listed authors once CI is green.

For each open pull request the job asks
:func:`autoland.readiness.approval_decision` (fetching evidence only as far
as the first failing condition) and submits one ``APPROVE``
review when the answer is ready.  Not-ready pull requests are logged and
skipped.  API failures propagate and end the run.
"""

from __future__ import annotations

from autoland.config import ApproveConfig
from autoland.github_client import GitHubClient
from autoland.output import RunLog
from autoland.readiness import APPROVAL_MESSAGE, Evidence, PolicyContext, approval_decision
from autoland.runner import APPROVED, DRY_RUN, PullOutcome, evidence_loader


def auto_approve_prs(
    client: GitHubClient,
    config: ApproveConfig,
    *,
    log: RunLog | None = None,
    dry_run: bool = False,
) -> list[PullOutcome]:
    """Approve every open PR that satisfies the approval policy.

    Parameters
    ----------
    client:
        Repository-scoped GitHub client.
    config:
        Allow-list and automation identity.
    log:
        Where progress lines go.  Defaults to the shared console.
    dry_run:
        Evaluate and log, but never submit a review.

    Returns
    -------
    list[PullOutcome]
        One entry per open pull request, in listing order.
    """
    log = log or RunLog()
    ctx = PolicyContext(authorized_users=config.authorized_users, bot_login=config.bot_login)
    log.info(f"Authorized users: {', '.join(sorted(config.authorized_users)) or '(none)'}")

    load = evidence_loader(client)
    pulls = client.list_open_pulls()
    log.info(f"Found {len(pulls)} open PRs")

    outcomes: list[PullOutcome] = []
    for pr in pulls:
        log.header(f"Processing PR #{pr.number}: {pr.title}")
        log.info(f"Author: {pr.author}")

        decision = approval_decision(Evidence.listed(pr), ctx, load)
        log.decision(decision)
        if not decision.ready:
            outcomes.append(PullOutcome.from_decision(pr, decision))
            continue

        if dry_run:
            log.warn(f"Dry run: not approving PR #{pr.number}")
            outcomes.append(PullOutcome(pr.number, pr.title, DRY_RUN, decision.reason))
            continue

        client.create_review(pr.number, event="APPROVE", body=APPROVAL_MESSAGE)
        log.done(f"Successfully approved PR #{pr.number}")
        outcomes.append(PullOutcome(pr.number, pr.title, APPROVED, decision.reason))

    return outcomes
