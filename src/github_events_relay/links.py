"""Slack link helpers derived from envelope fields."""

from .models import Envelope

GITHUB_WEB_URL = "https://github.com"


def slack_link(url: str, title: str) -> str:
    """Format a Slack mrkdwn link."""
    return f"<{url}|{title}>"


class EventLinks:
    """Repository, actor and branch links for one envelope."""

    def __init__(self, envelope: Envelope, base_url: str = GITHUB_WEB_URL) -> None:
        self.envelope = envelope
        self.base_url = base_url.rstrip("/")

    @property
    def repo_name(self) -> str:
        return self.envelope.repo.name

    @property
    def repo_url(self) -> str:
        return f"{self.base_url}/{self.repo_name}"

    @property
    def repo_link(self) -> str:
        return slack_link(self.repo_url, self.repo_name)

    @property
    def user_name(self) -> str:
        return self.envelope.actor.login

    @property
    def user_url(self) -> str:
        return f"{self.base_url}/{self.user_name}"

    @property
    def user_link(self) -> str:
        return slack_link(self.user_url, self.user_name)

    def tree_url(self, path: str) -> str:
        return f"{self.repo_url}/tree/{path}"

    def tree_link(self, path: str) -> str:
        return slack_link(self.tree_url(path), path)

    def commit_url(self, sha: str) -> str:
        return f"{self.repo_url}/commit/{sha}"

    def issue_name(self, number: int) -> str:
        """Short ``owner/repo#number`` reference."""
        return f"{self.repo_name}#{number}"
