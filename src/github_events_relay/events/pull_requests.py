"""Pull request and review comment event payloads."""

from pydantic import Field

from ..links import EventLinks, slack_link
from ..models import Attachment
from .base import Comment, EventPayload, PayloadModel


def pluralize(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


class PullRequest(PayloadModel):
    number: int = 0
    title: str = ""
    html_url: str = ""
    commits: int = 0
    additions: int = 0
    deletions: int = 0

    def stats(self) -> str:
        """Commit, addition and deletion summary in Slack mrkdwn."""
        commits = pluralize(self.commits, "commit", "commits")
        additions = pluralize(self.additions, "addition", "additions")
        deletions = pluralize(self.deletions, "deletion", "deletions")
        return (
            f"*{self.commits}* {commits} with *{self.additions}* {additions} "
            f"and *{self.deletions}* {deletions}"
        )


class PullRequestEvent(EventPayload):
    """Pull request opened, closed, merged, etc."""

    action: str = ""
    number: int = 0
    pull_request: PullRequest = Field(default_factory=PullRequest)

    def text(self, links: EventLinks) -> str:
        link = slack_link(self.pull_request.html_url, links.issue_name(self.number))
        return (
            f"*{links.user_link} {self.action} pull request {link}*\n"
            f"{self.pull_request.title}"
        )

    def attachments(self, links: EventLinks) -> list[Attachment]:
        return [Attachment(text=self.pull_request.stats())]


class PullRequestReviewCommentEvent(EventPayload):
    """Review comment on a pull request diff."""

    comment: Comment = Field(default_factory=Comment)
    pull_request: PullRequest = Field(default_factory=PullRequest)

    def text(self, links: EventLinks) -> str:
        link = slack_link(
            self.comment.html_url, links.issue_name(self.pull_request.number)
        )
        return (
            f"*{links.user_link} commented on pull request {link}*\n"
            f"{self.comment.preview()}"
        )
