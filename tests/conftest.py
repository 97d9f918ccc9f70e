"""
Pytest configuration and fixtures for GitHub events relay tests.
"""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
import pytest

from github_events_relay.config import GitHubFeedConfig, Settings, SlackConfig
from github_events_relay.models import Envelope

BASE_TIME = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)


def at(seconds: int) -> datetime:
    """Timestamp ``seconds`` after the test base time."""
    return BASE_TIME + timedelta(seconds=seconds)


def make_event(
    event_type: str = "PushEvent",
    seconds: int = 0,
    payload: Any = None,
    public: bool = True,
    event_id: str | None = None,
) -> dict[str, Any]:
    """Build a feed record as GitHub returns it."""
    return {
        "id": event_id or f"{event_type}-{seconds}",
        "type": event_type,
        "actor": {
            "id": 1,
            "login": "octocat",
            "avatar_url": "https://avatars.githubusercontent.com/u/1",
        },
        "repo": {"id": 2, "name": "octo-org/hello-world"},
        "payload": payload if payload is not None else {},
        "public": public,
        "created_at": at(seconds).strftime("%Y-%m-%dT%H:%M:%SZ"),
    }


def make_envelope(**kwargs: Any) -> Envelope:
    return Envelope.from_record(make_event(**kwargs))


@pytest.fixture
def mock_settings(tmp_path: Path) -> Settings:
    """Settings for testing."""
    return Settings(
        github_token="test-token",
        github_user="octocat",
        slack_token="xoxb-test",
        slack_channel="C0123456789",
        state_file=tmp_path / ".state",
        log_level="DEBUG",
    )


@pytest.fixture
def github_config() -> GitHubFeedConfig:
    return GitHubFeedConfig(token="test-token", user="octocat")


@pytest.fixture
def slack_config() -> SlackConfig:
    return SlackConfig(token="xoxb-test", channel="C0123456789")


@pytest.fixture
def push_payload() -> dict[str, Any]:
    """Sample push payload."""
    return {
        "push_id": 10115855396,
        "size": 3,
        "ref": "refs/heads/feature/login",
        "head": "c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3",
        "commits": [
            {
                "sha": "a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1",
                "author": {"name": "Octo Cat", "email": "octocat@github.com"},
                "message": "Add login form\n\nWith validation",
                "distinct": True,
            },
            {
                "sha": "b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2b2",
                "message": "Fix typo",
            },
            {
                "sha": "c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3c3",
                "message": "Wire up submit button",
            },
        ],
    }


@pytest.fixture
def pull_request_payload() -> dict[str, Any]:
    """Sample pull request payload."""
    return {
        "action": "opened",
        "number": 42,
        "pull_request": {
            "number": 42,
            "title": "Add login form",
            "html_url": "https://github.com/octo-org/hello-world/pull/42",
            "state": "open",
            "commits": 1,
            "additions": 0,
            "deletions": 5,
            "user": {"login": "octocat"},
        },
    }


@pytest.fixture
def issue_comment_payload() -> dict[str, Any]:
    """Sample issue comment payload."""
    return {
        "action": "created",
        "issue": {
            "number": 7,
            "title": "Login is broken",
            "html_url": "https://github.com/octo-org/hello-world/issues/7",
        },
        "comment": {
            "html_url": "https://github.com/octo-org/hello-world/issues/7#issuecomment-1",
            "body": "line one\nline two\nline three\nline four\nline five",
        },
    }


def feed_transport(
    responses: list[httpx.Response], requests: list[httpx.Request] | None = None
) -> httpx.MockTransport:
    """
    Mock transport answering feed requests from a list of responses.

    The last response is repeated once the list is exhausted.
    """
    remaining = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return httpx.MockTransport(handler)


def feed_response(
    events: list[dict[str, Any]],
    etag: str | None = '"etag-1"',
    poll_interval: str | None = "60",
    status_code: int = 200,
) -> httpx.Response:
    headers = {}
    if etag is not None:
        headers["ETag"] = etag
    if poll_interval is not None:
        headers["X-Poll-Interval"] = poll_interval
    return httpx.Response(status_code, content=json.dumps(events), headers=headers)


class SlackRecorder:
    """Mock Slack Web API that records every call."""

    def __init__(
        self,
        fail_methods: dict[str, str] | None = None,
        on_post: Callable[[], None] | None = None,
    ) -> None:
        self.fail_methods = fail_methods or {}
        self.on_post = on_post
        self.calls: list[tuple[str, httpx.Request]] = []

    def calls_to(self, method: str) -> list[httpx.Request]:
        return [request for name, request in self.calls if name == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "files.slack.com":
            self.calls.append(("upload", request))
            return httpx.Response(200, text="OK - 123")

        method = request.url.path.rsplit("/", 1)[-1]
        self.calls.append((method, request))

        if method in self.fail_methods:
            return httpx.Response(
                200, json={"ok": False, "error": self.fail_methods[method]}
            )
        if method == "chat.postMessage":
            if self.on_post:
                self.on_post()
            return httpx.Response(200, json={"ok": True, "ts": "1705312800.000100"})
        if method == "files.getUploadURLExternal":
            return httpx.Response(
                200,
                json={
                    "ok": True,
                    "upload_url": "https://files.slack.com/upload/v1/abc",
                    "file_id": "F0123",
                },
            )
        if method == "files.completeUploadExternal":
            return httpx.Response(200, json={"ok": True, "files": [{"id": "F0123"}]})
        return httpx.Response(404, json={"ok": False, "error": "unknown_method"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)
