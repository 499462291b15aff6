#!/usr/bin/env python
"""
Register (or list) the Strava push subscription for this deployment.

Callback URL: {BASE_URL}/api/v1/strava/webhook
Strava calls the callback with a GET handshake before answering, so the API
must already be reachable at BASE_URL.

Usage:
    python scripts/register_webhook.py
    python scripts/register_webhook.py --list
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.config import settings
from app.features.strava import StravaError, StravaOAuth


async def run(list_only: bool) -> int:
    if not settings.strava_configured or not settings.strava_webhook_verify_token:
        print("STRAVA_CLIENT_ID, STRAVA_CLIENT_SECRET and STRAVA_WEBHOOK_VERIFY_TOKEN must be set")
        return 1

    oauth = StravaOAuth(settings)

    try:
        if list_only:
            for subscription in await oauth.list_push_subscriptions():
                print(f"#{subscription.get('id')}: {subscription.get('callback_url')}")
            return 0

        callback_url = f"{settings.base_url}/api/v1/strava/webhook"
        result = await oauth.create_push_subscription(
            callback_url, settings.strava_webhook_verify_token
        )
    except StravaError as e:
        print(f"Strava refused: {e}")
        return 1

    if result.get("already_exists"):
        print("Subscription already exists")
    else:
        print(f"Subscribed #{result.get('id')} -> {callback_url}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Strava webhook subscription")
    parser.add_argument("--list", action="store_true", help="List existing subscriptions")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.list)))


if __name__ == "__main__":
    main()
