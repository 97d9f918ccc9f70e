"""
State management for the GitHub events relay.

This package persists the feed poller's resume state between runs.
"""

from .checkpoint import CheckpointStore, ResumeState

__all__ = [
    "CheckpointStore",
    "ResumeState",
]
