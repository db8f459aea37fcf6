"""Thin GitHub REST client.

Transport, auth headers and pagination parameters live here; callers get
plain dicts/lists back or a ``GithubError``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional
from urllib.parse import quote

import requests

from .errors import GithubError, NotFoundError

logger = logging.getLogger('gh_issue_viewer')

DEFAULT_API_URL = "https://api.github.com"


def _session(token: Optional[str]) -> requests.Session:
    s = requests.Session()
    if token:
        s.headers["Authorization"] = f"Bearer {token}"
    s.headers["Accept"] = "application/vnd.github+json"
    s.headers["X-GitHub-Api-Version"] = "2022-11-28"
    return s


def _error_detail(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return (resp.text or "")[:200]
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return (resp.text or "")[:200]


class GithubClient:
    """Handle created once at startup and shared read-only by every task."""

    def __init__(self, token: Optional[str] = None, api_url: str = DEFAULT_API_URL,
                 timeout: float = 30, session: Optional[requests.Session] = None) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else _session(token)

    def _request(self, method: str, path: str, what: str, **kwargs) -> object:
        url = f"{self.api_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise GithubError(f"{what} failed: {exc}") from exc
        if resp.status_code >= 300:
            message = f"{what} failed ({resp.status_code}): {_error_detail(resp)}"
            logger.warning("%s %s -> HTTP %s", method, path, resp.status_code)
            if resp.status_code == 404:
                raise NotFoundError(message, status=404)
            raise GithubError(message, status=resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    @staticmethod
    def _repo_path(owner: str, repo: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"

    def current_user(self) -> str:
        data = self._request("GET", "/user", "User lookup") or {}
        return str(data.get("login") or "")

    def list_comments(self, owner: str, repo: str, issue: int, page_size: int = 100,
                      page: int = 1) -> List[Dict[str, object]]:
        path = f"{self._repo_path(owner, repo)}/issues/{int(issue)}/comments"
        data = self._request("GET", path, "Comment fetch", params={"per_page": page_size, "page": page})
        return list(data or [])

    def create_comment(self, owner: str, repo: str, issue: int, body: str) -> Dict[str, object]:
        path = f"{self._repo_path(owner, repo)}/issues/{int(issue)}/comments"
        return self._request("POST", path, "Comment", json={"body": body}) or {}

    def get_label(self, owner: str, repo: str, name: str) -> Dict[str, object]:
        path = f"{self._repo_path(owner, repo)}/labels/{quote(name, safe='')}"
        return self._request("GET", path, "Label lookup") or {}

    def add_labels(self, owner: str, repo: str, issue: int, names: List[str]) -> List[Dict[str, object]]:
        path = f"{self._repo_path(owner, repo)}/issues/{int(issue)}/labels"
        return list(self._request("POST", path, "Label update", json={"labels": list(names)}) or [])

    def remove_label(self, owner: str, repo: str, issue: int, name: str) -> List[Dict[str, object]]:
        path = f"{self._repo_path(owner, repo)}/issues/{int(issue)}/labels/{quote(name, safe='')}"
        return list(self._request("DELETE", path, "Label removal") or [])

    def create_label(self, owner: str, repo: str, name: str, color: str,
                     description: str = "") -> Dict[str, object]:
        path = f"{self._repo_path(owner, repo)}/labels"
        payload = {"name": name, "color": color, "description": description}
        return self._request("POST", path, "Label creation", json=payload) or {}

    def search_issues(self, query: str, sort: str = "created", order: str = "desc",
                      per_page: int = 100, page: int = 1) -> Dict[str, object]:
        params = {"q": query, "sort": sort, "order": order, "per_page": per_page, "page": page}
        data = self._request("GET", "/search/issues", "Search", params=params) or {}
        return {
            "total_count": int(data.get("total_count") or 0),
            "items": list(data.get("items") or []),
        }
