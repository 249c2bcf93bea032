"""Auto-merge approved, green, conflict-free pull requests.

Policy lives in :func:`autoland.readiness.merge_decision`; this module only
gathers evidence and performs the squash merge.  A merge that GitHub refuses
(e.g. conflicts that appeared after the check) is logged and the loop moves on
to the next pull request.
"""

from __future__ import annotations

from autoland.github_client import GitHubAPIError, GitHubClient
from autoland.output import RunLog
from autoland.readiness import Evidence, merge_decision
from autoland.runner import DRY_RUN, FAILED, MERGED, PullOutcome, evidence_loader

MERGE_METHOD = "squash"


def auto_merge_prs(
    client: GitHubClient,
    *,
    log: RunLog | None = None,
    dry_run: bool = False,
) -> list[PullOutcome]:
    """Squash-merge every open PR that satisfies the merge policy."""
    log = log or RunLog()

    load = evidence_loader(client)
    pulls = client.list_open_pulls()
    log.info(f"Found {len(pulls)} open PRs to check for merging")

    outcomes: list[PullOutcome] = []
    for pr in pulls:
        log.header(f"Checking PR #{pr.number}: {pr.title}")

        decision = merge_decision(Evidence.listed(pr), load=load)
        log.decision(decision)
        if not decision.ready:
            outcomes.append(PullOutcome.from_decision(pr, decision))
            continue

        if dry_run:
            log.warn(f"Dry run: not merging PR #{pr.number}")
            outcomes.append(PullOutcome(pr.number, pr.title, DRY_RUN, decision.reason))
            continue

        try:
            client.merge_pull(
                pr.number,
                merge_method=MERGE_METHOD,
                commit_title=pr.squash_title,
                commit_message=pr.body or "",
            )
        except Exception as exc:  # noqa: BLE001
            # Any failure here is scoped to this PR; the rest of the batch still runs.
            message = exc.message if isinstance(exc, GitHubAPIError) else str(exc)
            log.fail(f"Failed to merge PR #{pr.number}: {message}")
            outcomes.append(PullOutcome(pr.number, pr.title, FAILED, message))
            continue

        log.done(f"Successfully merged PR #{pr.number}")
        outcomes.append(PullOutcome(pr.number, pr.title, MERGED, decision.reason))

    return outcomes
