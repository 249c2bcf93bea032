"""Shared fixtures: an in-memory GitHub double and a captured run log."""

from __future__ import annotations

import io

import pytest
from rich.console import Console

from autoland.github_client import GitHubAPIError
from autoland.models import CheckRun, CombinedStatus, Mergeability, PullRequest, Review, StatusEntry
from autoland.output import RunLog


def make_pr(
    number=1,
    title="Bump requests",
    author="alice",
    body="Routine update.",
    mergeability=Mergeability.MERGEABLE,
) -> PullRequest:
    """Build a PullRequest whose head SHA is derived from its number."""
    return PullRequest(
        number=number,
        title=title,
        author=author,
        head_sha=f"sha{number}",
        body=body,
        mergeability=mergeability,
    )


def green_status(entries=1) -> CombinedStatus:
    return CombinedStatus(
        state="success",
        statuses=tuple(StatusEntry(f"ci/{i}", "success") for i in range(entries)),
    )


class FakeGitHub:
    """Records every call; serves canned data keyed by PR number / head SHA."""

    def __init__(
        self,
        pulls=(),
        *,
        check_runs=None,
        statuses=None,
        reviews=None,
        details=None,
        merge_errors=None,
    ):
        self.pulls = list(pulls)
        self.check_runs = check_runs or {}
        self.statuses = statuses or {}
        self.reviews = reviews or {}
        self.details = details or {}
        self.merge_errors = merge_errors or {}
        self.calls: list[tuple] = []
        self.created_reviews: list[dict] = []
        self.merges: list[dict] = []

    def _pr(self, number):
        for pr in self.pulls:
            if pr.number == number:
                return pr
        raise GitHubAPIError(404, "Not Found")

    def list_open_pulls(self):
        self.calls.append(("list_open_pulls",))
        return list(self.pulls)

    def get_pull(self, number):
        self.calls.append(("get_pull", number))
        return self.details.get(number) or self._pr(number)

    def list_check_runs(self, ref):
        self.calls.append(("list_check_runs", ref))
        return list(self.check_runs.get(ref, []))

    def get_combined_status(self, ref):
        self.calls.append(("get_combined_status", ref))
        return self.statuses.get(ref, CombinedStatus(state="pending"))

    def list_reviews(self, number):
        self.calls.append(("list_reviews", number))
        return list(self.reviews.get(number, []))

    def create_review(self, number, *, event, body):
        self.calls.append(("create_review", number))
        review = {"number": number, "event": event, "body": body}
        self.created_reviews.append(review)
        # Later listings see the approval, as GitHub would.
        self.reviews.setdefault(number, []).append(Review("github-actions[bot]", "APPROVED"))
        return review

    def merge_pull(self, number, *, merge_method="squash", commit_title=None, commit_message=None):
        self.calls.append(("merge_pull", number))
        if number in self.merge_errors:
            raise self.merge_errors[number]
        merge = {
            "number": number,
            "merge_method": merge_method,
            "commit_title": commit_title,
            "commit_message": commit_message,
        }
        self.merges.append(merge)
        return {"merged": True, "sha": f"merged{number}"}


class CapturedLog(RunLog):
    def __init__(self):
        self.buffer = io.StringIO()
        super().__init__(Console(file=self.buffer, width=200, color_system=None))

    @property
    def text(self) -> str:
        return self.buffer.getvalue()


@pytest.fixture
def log() -> CapturedLog:
    return CapturedLog()


@pytest.fixture
def passing_run() -> CheckRun:
    return CheckRun(name="test", status="completed", conclusion="success")


@pytest.fixture(name="make_pr")
def make_pr_fixture():
    return make_pr


@pytest.fixture(name="green_status")
def green_status_fixture():
    return green_status


@pytest.fixture(name="FakeGitHub")
def fake_github_fixture():
    return FakeGitHub
