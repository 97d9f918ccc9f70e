"""
GitHub Events Relay

Polls a GitHub account's received events feed and posts each new event as a
formatted message to a Slack channel.
"""

__version__ = "0.1.0"

from .app import RelayApp
from .config import Settings
from .events import classify
from .exceptions import RelayError
from .polling import FeedPoller
from .renderer import render
from .state import CheckpointStore, ResumeState

__all__ = [
    "Settings",
    "RelayApp",
    "FeedPoller",
    "CheckpointStore",
    "ResumeState",
    "classify",
    "render",
    "RelayError",
]
