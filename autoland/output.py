"""Per-pull-request log lines for the auto-approve and auto-merge jobs.

Everything goes through a ``rich`` console so the CLI and the tests can swap
it out.  Markup and highlighting are off: logins such as
``github-actions[bot]`` must print verbatim.
"""

from __future__ import annotations

from rich.console import Console

from autoland.readiness import Decision, Verdict

console = Console()


class RunLog:
    """Sequential, human-readable progress for one job run."""

    def __init__(self, out: Console | None = None) -> None:
        self.console = out or console

    def _line(self, text: str, style: str | None = None) -> None:
        self.console.print(text, style=style, markup=False, highlight=False, emoji=False, soft_wrap=True)

    def header(self, text: str) -> None:
        self._line("")
        self._line(text, style="bold")

    def info(self, text: str) -> None:
        self._line(text)

    def ok(self, text: str) -> None:
        self._line(f"✓ {text}", style="green")

    def warn(self, text: str) -> None:
        self._line(f"⚠️  {text}", style="yellow")

    def fail(self, text: str) -> None:
        self._line(f"❌ {text}", style="red")

    def done(self, text: str) -> None:
        self._line(f"✅ {text}", style="bold green")

    def decision(self, decision: Decision) -> None:
        """Print the passed conditions, then the deciding reason."""
        for step in decision.trail:
            self.ok(step)
        if decision.verdict is Verdict.SKIP:
            self.warn(decision.reason)
        elif decision.verdict is Verdict.REJECT:
            self.fail(decision.reason)
        else:
            self.done(decision.reason)
