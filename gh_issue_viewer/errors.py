"""Exception types shared by the client, the config loader and the UI."""

from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base class for errors raised by gh_issue_viewer."""


class ConfigError(AppError, ValueError):
    """Configuration file or command line is unusable."""


class GithubError(AppError, RuntimeError):
    """A GitHub REST call failed (transport error or non-2xx response)."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(GithubError):
    """The requested GitHub resource does not exist (HTTP 404)."""


class ClientNotInitialized(AppError):
    """A background task started without a GitHub client handle.

    Must not occur after a successful startup.
    """

    def __init__(self) -> None:
        super().__init__("GitHub client not initialized.")
