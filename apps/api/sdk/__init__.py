"""Client-side helpers for consuming the CoachLink API."""
from sdk.poller import FeedClient, PollingTask

__all__ = ["FeedClient", "PollingTask"]
