"""Push event payload."""

from pydantic import Field

from ..links import EventLinks, slack_link
from ..models import Attachment
from .base import EventPayload, PayloadModel

SHORT_SHA_LENGTH = 7


class Commit(PayloadModel):
    sha: str = ""
    message: str = ""

    @property
    def short_sha(self) -> str:
        return self.sha[:SHORT_SHA_LENGTH]

    @property
    def summary(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n")[0]


class PushEvent(EventPayload):
    """Commits pushed to a branch."""

    ref: str = ""
    commits: list[Commit] = Field(default_factory=list)

    @property
    def branch(self) -> str:
        """Last path segment of the ref (``refs/heads/main`` -> ``main``)."""
        return self.ref.split("/")[-1]

    def text(self, links: EventLinks) -> str:
        return (
            f"*{links.user_link} pushed to {links.tree_link(self.branch)} "
            f"at {links.repo_link}*"
        )

    def attachments(self, links: EventLinks) -> list[Attachment]:
        if not self.commits:
            return []

        lines = [
            f"{slack_link(links.commit_url(commit.sha), commit.short_sha)} {commit.summary}"
            for commit in self.commits
        ]
        return [Attachment(text="\n".join(lines))]
