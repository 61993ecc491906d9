#!/usr/bin/env python3
"""
Print the unread summary and new notifications as they arrive.

Run: python scripts/watch_inbox.py --username alice --password secret
"""
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import requests

from sdk.poller import FeedClient


def _login(base_url: str, username: str, password: str) -> str:
    response = requests.post(
        f"{base_url}/v1/auth/login",
        json={"username": username, "password": password},
        timeout=10,
    )
    if response.status_code != 200:
        raise SystemExit(f"Login failed: {response.json().get('message', response.text)}")
    return response.json()["access_token"]


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--base-url", default=os.getenv("COACHLINK_URL", "http://localhost:8000"))
    parser.add_argument("--token", default=os.getenv("COACHLINK_TOKEN"), help="bearer token (default: COACHLINK_TOKEN)")
    parser.add_argument("--username")
    parser.add_argument("--password")
    parser.add_argument("--partner", help="also follow the conversation with this user id")
    parser.add_argument("--interval", type=float, default=5.0)
    args = parser.parse_args()

    token = args.token
    if not token:
        if not (args.username and args.password):
            parser.error("either --token or --username/--password is required")
        token = _login(args.base_url, args.username, args.password)

    seen = set()

    def render(snapshot):
        unread = snapshot["unread"]
        print(f"[{time.strftime('%H:%M:%S')}] unread messages: {unread['total']}")
        for sender in unread["by_user"].values():
            print(f"  {sender['name']}: {sender['count']}")
        for note in reversed(snapshot["notifications"]):
            if note["id"] in seen:
                continue
            seen.add(note["id"])
            print(f"  ({note['type']}) {note['content']}")
        for message in snapshot.get("thread", [])[-5:]:
            print(f"  > {message['text']}")

    client = FeedClient(args.base_url, token, interval=args.interval)
    client.on_update = render
    if args.partner:
        client.open_conversation(args.partner)
    client.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        client.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
