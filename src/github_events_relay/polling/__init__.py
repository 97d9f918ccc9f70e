"""
Polling system for the GitHub events relay.

This package contains the conditional polling loop that turns the GitHub
received events feed into an ordered stream of new events.
"""

from .feed_poller import FeedPoller, parse_poll_interval

__all__ = ["FeedPoller", "parse_poll_interval"]
