"""
Tests for event classification and rendering.
"""

import pytest

from conftest import make_envelope, make_event
from github_events_relay.events import (
    EventPayload,
    IssueCommentEvent,
    IssuesEvent,
    PullRequestEvent,
    PullRequestReviewCommentEvent,
    PushEvent,
    classify,
    supported_event_types,
)
from github_events_relay.exceptions import (
    ClassificationError,
    EventDecodeError,
    UnknownEventTypeError,
)
from github_events_relay.links import EventLinks, slack_link
from github_events_relay.models import Envelope
from github_events_relay.renderer import render, render_envelope

REPO = "<https://github.com/octo-org/hello-world|octo-org/hello-world>"
USER = "<https://github.com/octocat|octocat>"


class TestClassify:
    """Test mapping envelopes to typed payloads."""

    def test_supported_event_types(self):
        assert supported_event_types() == [
            "IssueCommentEvent",
            "IssuesEvent",
            "PullRequestEvent",
            "PullRequestReviewCommentEvent",
            "PushEvent",
        ]

    @pytest.mark.parametrize(
        "event_type, payload_class",
        [
            ("PushEvent", PushEvent),
            ("IssuesEvent", IssuesEvent),
            ("IssueCommentEvent", IssueCommentEvent),
            ("PullRequestEvent", PullRequestEvent),
            ("PullRequestReviewCommentEvent", PullRequestReviewCommentEvent),
        ],
    )
    def test_known_types(self, event_type, payload_class):
        payload = classify(make_envelope(event_type=event_type, payload={}))
        assert isinstance(payload, payload_class)

    def test_push_payload_fields(self, push_payload):
        payload = classify(make_envelope(payload=push_payload))

        assert payload.branch == "login"
        assert [c.short_sha for c in payload.commits] == ["a1a1a1a", "b2b2b2b", "c3c3c3c"]
        assert payload.commits[0].summary == "Add login form"

    def test_unknown_type(self):
        """Test that an unknown tag keeps the tag and the original record."""
        envelope = make_envelope(event_type="WatchEvent", payload={"action": "started"})

        with pytest.raises(UnknownEventTypeError) as exc:
            classify(envelope)

        assert str(exc.value) == "unknown event: WatchEvent"
        assert exc.value.tag == "WatchEvent"
        assert exc.value.envelope is envelope
        assert exc.value.envelope.raw["payload"] == {"action": "started"}
        assert isinstance(exc.value, ClassificationError)

    def test_non_object_payload(self):
        envelope = make_envelope(event_type="PushEvent", payload=[1, 2, 3])

        with pytest.raises(EventDecodeError, match="payload must be an object") as exc:
            classify(envelope)

        assert exc.value.tag == "PushEvent"

    def test_wrongly_typed_field(self):
        envelope = make_envelope(
            event_type="PullRequestEvent",
            payload={"number": "not-a-number"},
        )

        with pytest.raises(EventDecodeError) as exc:
            classify(envelope)

        assert exc.value.code == "EVENT_DECODE_ERROR"
        assert "number" in exc.value.reason

    def test_null_fields_use_defaults(self):
        payload = classify(
            make_envelope(
                event_type="IssuesEvent",
                payload={"action": None, "issue": {"number": 3, "title": None}},
            )
        )

        assert payload.action == ""
        assert payload.issue.number == 3
        assert payload.issue.title == ""

    def test_null_payload_uses_defaults(self):
        record = make_event(event_type="IssuesEvent")
        record["payload"] = None

        payload = classify(Envelope.from_record(record))

        assert isinstance(payload, IssuesEvent)
        assert payload.action == ""
        assert payload.issue.number == 0

    def test_missing_payload_renders(self):
        record = make_event(event_type="PushEvent")
        del record["payload"]

        notification = render_envelope(Envelope.from_record(record))

        assert notification.text.startswith(f"*{USER} pushed to")
        assert notification.attachments == []

    def test_unknown_fields_are_ignored(self):
        payload = classify(
            make_envelope(payload={"ref": "refs/heads/main", "distinct_size": 4})
        )
        assert payload.branch == "main"


class TestLinks:
    """Test Slack link helpers."""

    def test_slack_link(self):
        assert slack_link("https://example.com", "title") == "<https://example.com|title>"

    def test_event_links(self):
        links = EventLinks(make_envelope())

        assert links.repo_link == REPO
        assert links.user_link == USER
        assert links.tree_link("main") == (
            "<https://github.com/octo-org/hello-world/tree/main|main>"
        )
        assert links.commit_url("abc") == (
            "https://github.com/octo-org/hello-world/commit/abc"
        )
        assert links.issue_name(7) == "octo-org/hello-world#7"

    def test_custom_base_url(self):
        links = EventLinks(make_envelope(), "https://github.example.com/")
        assert links.repo_url == "https://github.example.com/octo-org/hello-world"


class TestRender:
    """Test notification rendering."""

    def test_sender_identity(self, push_payload):
        notification = render_envelope(make_envelope(payload=push_payload))

        assert notification.username == "octocat[github event]"
        assert notification.icon_url == "https://avatars.githubusercontent.com/u/1"

    def test_push(self, push_payload):
        notification = render_envelope(make_envelope(payload=push_payload))

        assert notification.text == (
            f"*{USER} pushed to "
            "<https://github.com/octo-org/hello-world/tree/login|login> "
            f"at {REPO}*"
        )
        assert len(notification.attachments) == 1

        lines = notification.attachments[0].text.split("\n")
        assert len(lines) == 3
        assert lines[0] == (
            "<https://github.com/octo-org/hello-world/commit/"
            "a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1|a1a1a1a> Add login form"
        )
        assert lines[1].endswith("|b2b2b2b> Fix typo")
        assert notification.attachments[0].mrkdwn_in == ["text"]

    def test_push_without_commits(self):
        notification = render_envelope(
            make_envelope(payload={"ref": "refs/heads/main", "commits": []})
        )
        assert notification.attachments == []

    def test_pull_request(self, pull_request_payload):
        notification = render_envelope(
            make_envelope(event_type="PullRequestEvent", payload=pull_request_payload)
        )

        assert notification.text == (
            f"*{USER} opened pull request "
            "<https://github.com/octo-org/hello-world/pull/42|octo-org/hello-world#42>*\n"
            "Add login form"
        )
        assert notification.attachments[0].text == (
            "*1* commit with *0* additions and *5* deletions"
        )

    def test_pull_request_plural_and_singular(self, pull_request_payload):
        pull_request_payload["pull_request"].update(commits=3, additions=1, deletions=1)
        notification = render_envelope(
            make_envelope(event_type="PullRequestEvent", payload=pull_request_payload)
        )

        assert notification.attachments[0].text == (
            "*3* commits with *1* addition and *1* deletion"
        )

    def test_issue(self):
        notification = render_envelope(
            make_envelope(
                event_type="IssuesEvent",
                payload={
                    "action": "closed",
                    "issue": {
                        "number": 7,
                        "title": "Login is broken",
                        "html_url": "https://github.com/octo-org/hello-world/issues/7",
                    },
                },
            )
        )

        assert notification.text == (
            f"*{USER} closed issue "
            "<https://github.com/octo-org/hello-world/issues/7|octo-org/hello-world#7>*\n"
            "Login is broken"
        )
        assert notification.attachments == []

    def test_issue_comment_is_truncated(self, issue_comment_payload):
        notification = render_envelope(
            make_envelope(event_type="IssueCommentEvent", payload=issue_comment_payload)
        )

        headline, *body = notification.text.split("\n")
        assert headline == (
            f"*{USER} commented on issue "
            "<https://github.com/octo-org/hello-world/issues/7#issuecomment-1"
            "|octo-org/hello-world#7>*"
        )
        assert body == ["line one", "line two", "line three"]

    def test_issue_comment_on_pull_request(self, issue_comment_payload):
        issue_comment_payload["issue"]["pull_request"] = {
            "url": "https://api.github.com/repos/octo-org/hello-world/pulls/7"
        }
        notification = render_envelope(
            make_envelope(event_type="IssueCommentEvent", payload=issue_comment_payload)
        )

        assert "commented on pull request" in notification.text

    def test_review_comment(self):
        notification = render_envelope(
            make_envelope(
                event_type="PullRequestReviewCommentEvent",
                payload={
                    "action": "created",
                    "comment": {
                        "html_url": "https://github.com/octo-org/hello-world/pull/42#r1",
                        "body": "nit\nrename this\nand this\nand also this",
                    },
                    "pull_request": {"number": 42, "title": "Add login form"},
                },
            )
        )

        assert notification.text == (
            f"*{USER} commented on pull request "
            "<https://github.com/octo-org/hello-world/pull/42#r1|octo-org/hello-world#42>*\n"
            "nit\nrename this\nand this"
        )

    def test_base_payload_renders_empty_message(self):
        notification = render(make_envelope(), EventPayload())

        assert notification.text == ""
        assert notification.attachments == []
        assert notification.username == "octocat[github event]"

    def test_unknown_type_cannot_be_rendered(self):
        with pytest.raises(UnknownEventTypeError):
            render_envelope(make_envelope(event_type="ForkEvent"))
