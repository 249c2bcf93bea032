"""autoland -- auto-approve and auto-merge pull requests once CI is green."""

__version__ = "0.1.0"
