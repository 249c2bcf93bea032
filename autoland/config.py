"""Run configuration for the auto-approve and auto-merge jobs.

The approval job reads its allow-list from a JSON document (by default
``.github/auto-approve-config.json``)::

    {
      "authorizedUsers": ["alice", "dependabot[bot]"],
      "botLogin": "github-actions[bot]"
    }

``botLogin`` is optional.  Repository and token come from the environment
GitHub Actions provides (``GITHUB_REPOSITORY``, ``GITHUB_TOKEN``).

Unlike the analysis tools' configs, nothing here falls back silently: a
missing or malformed file is an error that ends the run.

Public API
----------
load_approve_config(path) -> ApproveConfig
resolve_repository(slug) -> (owner, repo)
resolve_token() -> str
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from autoland.models import DEFAULT_BOT_LOGIN

DEFAULT_CONFIG_PATH = Path(".github") / "auto-approve-config.json"


class ConfigError(ValueError):
    """The run cannot start because its configuration is unusable."""


@dataclass(frozen=True)
class ApproveConfig:
    authorized_users: frozenset[str] = field(default_factory=frozenset)
    bot_login: str = DEFAULT_BOT_LOGIN

    @classmethod
    def from_dict(cls, data: Any, source: Optional[Path] = None) -> "ApproveConfig":
        if not isinstance(data, dict):
            raise ConfigError(f"{source or 'config'}: expected a JSON object")
        users = data.get("authorizedUsers")
        if not isinstance(users, list) or not all(isinstance(u, str) for u in users):
            raise ConfigError(f"{source or 'config'}: 'authorizedUsers' must be a list of strings")
        bot_login = data.get("botLogin", DEFAULT_BOT_LOGIN)
        if not isinstance(bot_login, str) or not bot_login:
            raise ConfigError(f"{source or 'config'}: 'botLogin' must be a non-empty string")
        return cls(authorized_users=frozenset(users), bot_login=bot_login)


def load_approve_config(path: Optional[Path] = None) -> ApproveConfig:
    """Load the approval allow-list.

    Raises ``FileNotFoundError`` if the file is missing,
    ``json.JSONDecodeError`` if it is not JSON and :class:`ConfigError` if the
    document has the wrong shape.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    return ApproveConfig.from_dict(data, source=path)


def resolve_repository(slug: Optional[str] = None) -> tuple[str, str]:
    """Return ``(owner, repo)`` from *slug* or ``GITHUB_REPOSITORY``."""
    slug = (slug or os.environ.get("GITHUB_REPOSITORY", "")).strip()
    owner, _, repo = slug.partition("/")
    if not owner or not repo or "/" in repo:
        raise ConfigError("Repository must be given as owner/repo (--repo or GITHUB_REPOSITORY)")
    return owner, repo


def resolve_token() -> str:
    token = (os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN") or "").strip()
    if not token:
        raise ConfigError("GITHUB_TOKEN is required")
    return token
