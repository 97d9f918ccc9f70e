"""Issue and issue comment event payloads."""

from typing import Any

from pydantic import Field

from ..links import EventLinks, slack_link
from .base import Comment, EventPayload, PayloadModel


class Issue(PayloadModel):
    number: int = 0
    title: str = ""
    html_url: str = ""
    # Present when the issue is actually a pull request
    pull_request: dict[str, Any] | None = None


class IssuesEvent(EventPayload):
    """Issue opened, closed, reopened, etc."""

    action: str = ""
    issue: Issue = Field(default_factory=Issue)

    def text(self, links: EventLinks) -> str:
        link = slack_link(self.issue.html_url, links.issue_name(self.issue.number))
        return f"*{links.user_link} {self.action} issue {link}*\n{self.issue.title}"


class IssueCommentEvent(EventPayload):
    """Comment on an issue or on the conversation of a pull request."""

    comment: Comment = Field(default_factory=Comment)
    issue: Issue = Field(default_factory=Issue)

    def text(self, links: EventLinks) -> str:
        kind = "pull request" if self.issue.pull_request is not None else "issue"
        link = slack_link(self.comment.html_url, links.issue_name(self.issue.number))
        return f"*{links.user_link} commented on {kind} {link}*\n{self.comment.preview()}"
