"""
Account Security Module

Implements:
- Login attempt tracking per username
- Temporary lockout after repeated failures
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from collections import defaultdict
import threading

# In-memory store for login attempts (single instance; move to Redis for multi-instance)
# Structure: {username: [(timestamp, success), ...]}
_login_attempts: dict = defaultdict(list)
_lock = threading.Lock()

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_DURATION_MINUTES = 15
ATTEMPT_WINDOW_MINUTES = 30


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _key(username: str) -> str:
    return (username or "").strip().lower()


def _clean_old_attempts(key: str) -> None:
    cutoff = _now() - timedelta(minutes=ATTEMPT_WINDOW_MINUTES)
    with _lock:
        _login_attempts[key] = [
            (ts, success) for ts, success in _login_attempts[key]
            if ts > cutoff
        ]


def record_login_attempt(username: str, success: bool) -> None:
    """Record a login attempt; a success clears the failure history."""
    key = _key(username)
    _clean_old_attempts(key)
    with _lock:
        if success:
            _login_attempts[key] = [(_now(), True)]
        else:
            _login_attempts[key].append((_now(), False))


def is_account_locked(username: str) -> Tuple[bool, Optional[int]]:
    """
    Check if a username is locked due to failed attempts.

    Returns:
        Tuple of (is_locked, seconds_until_unlock or None)
    """
    key = _key(username)
    _clean_old_attempts(key)

    with _lock:
        failed = [ts for ts, success in _login_attempts.get(key, []) if not success]
        if len(failed) < MAX_FAILED_ATTEMPTS:
            return False, None

        lockout_end = max(failed) + timedelta(minutes=LOCKOUT_DURATION_MINUTES)
        now = _now()
        if now < lockout_end:
            return True, int((lockout_end - now).total_seconds())
        return False, None


def clear_lockout(username: str) -> None:
    """Manually clear lockout for an account (admin password reset, tests)."""
    with _lock:
        _login_attempts.pop(_key(username), None)


def reset_all() -> None:
    with _lock:
        _login_attempts.clear()
