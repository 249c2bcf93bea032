"""Minimal GitHub REST client for the auto-approve and auto-merge jobs.

Design goals
------------
- Dependency-free (stdlib ``urllib`` only), so the jobs run in a bare
  GitHub Actions runner.
- Only the handful of endpoints the jobs need, scoped to one repository.
- Any non-2xx response raises :class:`GitHubAPIError`; callers decide what to
  catch.  The jobs only catch failures of the merge call.
"""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from autoland.models import CheckRun, CombinedStatus, PullRequest, Review

DEFAULT_API_URL = "https://api.github.com"
PER_PAGE = 100


class GitHubAPIError(RuntimeError):
    """A GitHub API call returned an error response."""

    def __init__(self, status: int, message: str, url: str = "") -> None:
        super().__init__(f"HTTP {status}: {message}" if status else message)
        self.status = status
        self.message = message
        self.url = url


def _error_message(body: str) -> str:
    try:
        parsed = json.loads(body) if body else {}
    except json.JSONDecodeError:
        return body
    if isinstance(parsed, dict) and parsed.get("message"):
        return str(parsed["message"])
    return body


class GitHubClient:
    """Repository-scoped wrapper around the GitHub REST API."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        *,
        api_url: str | None = None,
        timeout: float = 30,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.token = token
        self.api_url = (api_url or os.environ.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"GitHubClient({self.owner}/{self.repo})"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _url(self, path: str, params: dict[str, Any] | None = None) -> str:
        url = f"{self.api_url}/repos/{self.owner}/{self.repo}/{path.lstrip('/')}"
        if params:
            url += "?" + urllib.parse.urlencode(params)
        return url

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        url = self._url(path, params)
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "User-Agent": "autoland",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        data = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"

        req = urllib.request.Request(url, method=method, headers=headers, data=data)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8") if hasattr(e, "read") else ""
            raise GitHubAPIError(int(e.code or 0), _error_message(body) or str(e.reason), url) from e
        return json.loads(body) if body else {}

    def _paginate(self, path: str, *, params: dict[str, Any] | None = None, key: str | None = None) -> list[Any]:
        """Fetch every page of a list endpoint.

        ``key`` names the array inside an object response (the check-runs
        endpoint wraps its items as ``{"total_count": N, "check_runs": [...]}``).
        """
        items: list[Any] = []
        page = 1
        while True:
            query = dict(params or {}, per_page=PER_PAGE, page=page)
            data = self._request("GET", path, params=query)
            batch = data.get(key, []) if key else data
            items.extend(batch)
            if len(batch) < PER_PAGE:
                return items
            page += 1

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_open_pulls(self) -> list[PullRequest]:
        return [PullRequest.from_api(d) for d in self._paginate("pulls", params={"state": "open"})]

    def get_pull(self, number: int) -> PullRequest:
        return PullRequest.from_api(self._request("GET", f"pulls/{number}"))

    def list_check_runs(self, ref: str) -> list[CheckRun]:
        runs = self._paginate(f"commits/{ref}/check-runs", key="check_runs")
        return [CheckRun.from_api(d) for d in runs]

    def get_combined_status(self, ref: str) -> CombinedStatus:
        return CombinedStatus.from_api(self._request("GET", f"commits/{ref}/status"))

    def list_reviews(self, number: int) -> list[Review]:
        return [Review.from_api(d) for d in self._paginate(f"pulls/{number}/reviews")]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_review(self, number: int, *, event: str, body: str) -> dict[str, Any]:
        return self._request("POST", f"pulls/{number}/reviews", payload={"event": event, "body": body})

    def merge_pull(
        self,
        number: int,
        *,
        merge_method: str = "squash",
        commit_title: str | None = None,
        commit_message: str | None = None,
    ) -> dict[str, Any]:
        """Merge a pull request; raises :class:`GitHubAPIError` if GitHub refuses."""
        payload: dict[str, Any] = {"merge_method": merge_method}
        if commit_title is not None:
            payload["commit_title"] = commit_title
        if commit_message is not None:
            payload["commit_message"] = commit_message

        data = self._request("PUT", f"pulls/{number}/merge", payload=payload)
        if not data.get("merged", False):
            raise GitHubAPIError(200, str(data.get("message") or "merge not performed"), self._url(f"pulls/{number}/merge"))
        return data
