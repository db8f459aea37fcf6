import asyncio
import os
import sys

import pytest

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from gh_issue_viewer.actions import ActionQueue  # noqa: E402
from gh_issue_viewer.errors import NotFoundError  # noqa: E402
from gh_issue_viewer.models import AppState  # noqa: E402


class FakeClient:
    """In-memory stand-in for GithubClient that records every call."""

    def __init__(self):
        self.calls = []
        self.comments = {}
        self.repo_labels = {}
        self.issue_labels = {}
        self.search_result = {"total_count": 0, "items": []}
        self.failures = {}
        self.login = "tester"
        self._next_id = 1000

    @staticmethod
    def comment(comment_id, author="octocat", body="hello", created_at="2024-05-01T10:20:30Z"):
        return {"id": comment_id, "user": {"login": author}, "body": body, "created_at": created_at}

    @staticmethod
    def issue(number, title="Issue", body="Body text", labels=(), state="open", author="octocat"):
        return {
            "number": number,
            "title": title,
            "state": state,
            "body": body,
            "user": {"login": author},
            "created_at": "2024-05-01T10:20:30Z",
            "labels": [{"name": name, "color": "ededed"} for name in labels],
            "comments": 0,
        }

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        exc = self.failures.get(name)
        if exc is not None:
            raise exc

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def current_user(self):
        self._record("current_user")
        return self.login

    def list_comments(self, owner, repo, issue, page_size=100, page=1):
        self._record("list_comments", owner, repo, issue, page_size, page)
        return list(self.comments.get(issue, []))

    def create_comment(self, owner, repo, issue, body):
        self._record("create_comment", owner, repo, issue, body)
        self._next_id += 1
        return self.comment(self._next_id, author=self.login, body=body)

    def get_label(self, owner, repo, name):
        self._record("get_label", owner, repo, name)
        if name not in self.repo_labels:
            raise NotFoundError("Label lookup failed (404): Not Found", status=404)
        return self.repo_labels[name]

    def add_labels(self, owner, repo, issue, names):
        self._record("add_labels", owner, repo, issue, list(names))
        current = self.issue_labels.setdefault(issue, [])
        for name in names:
            if name not in current:
                current.append(name)
        return [self.repo_labels.get(n, {"name": n, "color": "ededed"}) for n in current]

    def remove_label(self, owner, repo, issue, name):
        self._record("remove_label", owner, repo, issue, name)
        current = self.issue_labels.setdefault(issue, [])
        if name not in current:
            raise NotFoundError("Label removal failed (404): Label does not exist", status=404)
        current.remove(name)
        return [self.repo_labels.get(n, {"name": n, "color": "ededed"}) for n in current]

    def create_label(self, owner, repo, name, color, description=""):
        self._record("create_label", owner, repo, name, color, description)
        label = {"name": name, "color": color, "description": description}
        self.repo_labels[name] = label
        return label

    def search_issues(self, query, sort="created", order="desc", per_page=100, page=1):
        self._record("search_issues", query, sort, order)
        return self.search_result


class DummyTask:
    def __init__(self, coro):
        self._coro = coro
        self.cancelled = False
        self.callbacks = []

    def cancel(self):
        self.cancelled = True

    def add_done_callback(self, fn):
        self.callbacks.append(fn)


class ScheduledTasks:
    """Captures coroutines handed to asyncio.create_task; runs them on demand."""

    def __init__(self):
        self.pending = []

    def create_task(self, coro):
        self.pending.append(coro)
        return DummyTask(coro)

    def names(self):
        return [coro.cr_code.co_name for coro in self.pending]

    def run_pending(self, name=None):
        to_run = [c for c in self.pending if name is None or c.cr_code.co_name == name]
        for coro in to_run:
            self.pending.remove(coro)
            loop = asyncio.new_event_loop()
            try:
                loop.run_until_complete(coro)
            finally:
                loop.close()
        return len(to_run)

    def close(self):
        for coro in self.pending:
            coro.close()
        self.pending = []


@pytest.fixture
def scheduled_tasks(monkeypatch):
    tasks = ScheduledTasks()
    monkeypatch.setattr(asyncio, "create_task", tasks.create_task)
    yield tasks
    tasks.close()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def app_state():
    return AppState(owner="octo", repo="hello", current_user="tester")


@pytest.fixture
def queue():
    return ActionQueue()


@pytest.fixture
def drain():
    """Everything currently queued, in arrival order."""
    return lambda queue: list(iter(queue.try_recv, None))


@pytest.fixture
def deliver():
    """Feed queued actions to components until the queue is empty."""

    def _deliver(queue, *components):
        delivered = []
        while True:
            action = queue.try_recv()
            if action is None:
                return delivered
            delivered.append(action)
            for component in components:
                component.handle_action(action)

    return _deliver
