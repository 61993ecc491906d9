"""
Polling client for the unread summary, notification feed and open thread.

The server never pushes. A consumer re-fetches on a fixed interval while a
view is open and stops when it closes:

    client = FeedClient("http://localhost:8000", token)
    client.on_update = render
    client.start()
    client.open_conversation(partner_id)
    ...
    client.stop()
"""
import logging
import threading
from typing import Any, Callable, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 5.0


class PollingTask:
    """Run ``fn`` every ``interval`` seconds on one background thread."""

    def __init__(self, fn: Callable[[], Any], interval: float = DEFAULT_INTERVAL_SECONDS, name: str = "poller"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.fn = fn
        self.interval = interval
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, run_immediately: bool = True) -> None:
        """Start the loop. Calling start on a running task does nothing."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, args=(run_immediately,), name=self.name, daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def _run(self, run_immediately: bool) -> None:
        if run_immediately:
            self._tick()
        while not self._stop.wait(self.interval):
            self._tick()

    def _tick(self) -> None:
        try:
            self.fn()
        except Exception as e:
            # A failed poll is retried on the next tick
            logger.warning(f"Poll '{self.name}' failed: {e}")


class FeedClient:
    """
    requests-based consumer of the messaging and notification endpoints.

    ``on_update`` receives a dict with ``unread``, ``notifications`` and,
    while a conversation is open, ``thread``.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Authorization"] = f"Bearer {token}"
        self.on_update: Optional[Callable[[Dict[str, Any]], None]] = None
        self.partner_id: Optional[str] = None
        self.latest: Dict[str, Any] = {}
        self._task = PollingTask(self.poll_once, interval=interval, name="coachlink-feed")

    def _get(self, path: str) -> Any:
        response = self.session.get(f"{self.base_url}{path}", timeout=self.timeout)
        response.raise_for_status()
        advertised = response.headers.get("X-Poll-Interval")
        if advertised:
            try:
                self._task.interval = max(1.0, float(advertised))
            except ValueError:
                logger.debug(f"Ignoring bad X-Poll-Interval header: {advertised}")
        return response.json()

    def unread(self) -> Dict[str, Any]:
        return self._get("/v1/messages/unread")

    def notifications(self) -> list:
        return self._get("/v1/notifications")

    def thread(self, partner_id: str) -> list:
        return self._get(f"/v1/messages/{partner_id}")

    def send(self, to: str, text: str) -> Dict[str, Any]:
        response = self.session.post(
            f"{self.base_url}/v1/messages", json={"to": to, "text": text}, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def poll_once(self) -> Dict[str, Any]:
        snapshot: Dict[str, Any] = {
            "unread": self.unread(),
            "notifications": self.notifications(),
        }
        partner_id = self.partner_id
        if partner_id:
            snapshot["thread"] = self.thread(partner_id)
        self.latest = snapshot
        if self.on_update is not None:
            self.on_update(snapshot)
        return snapshot

    def open_conversation(self, partner_id: str) -> None:
        self.partner_id = str(partner_id)

    def close_conversation(self) -> None:
        self.partner_id = None

    def start(self) -> None:
        self._task.start()

    def stop(self) -> None:
        self._task.stop(timeout=self.timeout)

    @property
    def running(self) -> bool:
        return self._task.running
