#!/usr/bin/env python3
"""
Remote control for a running Strike Trainer web service.

Usage:
  python3 strike_trainer_ctl.py start [mode=counter_simple total_rounds=5]
  python3 strike_trainer_ctl.py pause | resume | stop | reset | status
  python3 strike_trainer_ctl.py config intensity=fast
ENV:
  STRIKE_TRAINER_URL (default http://localhost:5000)
"""

import argparse
import json
import os
import sys
from typing import Dict, List, Optional

import requests

BASE_URL = os.getenv("STRIKE_TRAINER_URL", "http://localhost:5000")
TIMEOUT_SECS = 5

ACTIONS = ("start", "stop", "pause", "resume", "reset", "config", "status")


def parse_settings(pairs: List[str]) -> Dict[str, str]:
    """['mode=combo', 'total_rounds=5'] -> {'mode': 'combo', 'total_rounds': '5'}"""
    settings = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {pair!r}")
        settings[key.strip()] = value.strip()
    return settings


def send(action: str, settings: Optional[Dict[str, str]] = None, base_url: str = BASE_URL,
         http: Optional[requests.Session] = None) -> Dict:
    """Call the API for one action and return the decoded JSON result."""
    http = http or requests.Session()
    url = f"{base_url.rstrip('/')}/api/training/{action}"
    if action == "status":
        response = http.get(url, timeout=TIMEOUT_SECS)
    else:
        response = http.post(url, json=settings or {}, timeout=TIMEOUT_SECS)
    try:
        return response.json()
    except ValueError:
        return {'success': False, 'error': f'HTTP {response.status_code}: {response.text[:200]}'}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Strike Trainer remote control")
    parser.add_argument("action", choices=ACTIONS)
    parser.add_argument("settings", nargs="*", help="key=value config fields (start/config)")
    parser.add_argument("--url", default=BASE_URL, help="Service URL (default env STRIKE_TRAINER_URL)")
    args = parser.parse_args(argv)

    try:
        settings = parse_settings(args.settings)
    except ValueError as e:
        parser.error(str(e))

    try:
        result = send(args.action, settings, base_url=args.url)
    except requests.RequestException as e:
        print(f"❌ Could not reach {args.url}: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    if args.action == "status":
        return 0
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
