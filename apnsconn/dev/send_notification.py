from __future__ import annotations

import logging
import sys
from typing import List, Optional

from apnsconn.bootstrap import build_app_system
from apnsconn.domain.models import NotificationMessage
from apnsconn.errors import ApnsConnectionError

USAGE = (
    "usage: python -m apnsconn.dev.send_notification --token HEX "
    "[--config PATH] [--alert TEXT] [--badge N] [--sound NAME]"
)


def _arg(argv: List[str], flag: str) -> Optional[str]:
    if flag in argv:
        i = argv.index(flag)
        if i + 1 < len(argv):
            return argv[i + 1]
    return None


def main(argv: Optional[List[str]] = None) -> int:
    """
    Push a single notification through a fresh connection.

    Notes
    -----
    - Loads configuration from `config.yaml` (or ``APNS_CONFIG``) unless
      ``--config`` is given.
    - Opens one connection, sends one message, stops and prints the
      termination reason.
    """
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    token = _arg(argv, "--token")
    if not token:
        print(USAGE, file=sys.stderr)
        return 2

    badge = _arg(argv, "--badge")
    try:
        badge_count = int(badge) if badge is not None else None
    except ValueError:
        print(USAGE, file=sys.stderr)
        return 2

    msg = NotificationMessage(
        device_token=token,
        alert=_arg(argv, "--alert"),
        badge=badge_count,
        sound=_arg(argv, "--sound"),
    )

    wiring = build_app_system(config_path=_arg(argv, "--config"))
    try:
        actor = wiring.registry.connect(wiring.config.connection)
    except ApnsConnectionError as e:
        print(f"[APNS] connect failed: {e}", file=sys.stderr)
        return 1

    try:
        actor.send(msg)
    except ApnsConnectionError as e:
        print(f"[APNS] rejected: {e}", file=sys.stderr)
        return 1
    finally:
        actor.stop()

    termination = actor.wait(timeout=wiring.config.connection.timeout_s)
    print(f"[APNS] connection ended: {termination}")
    return 0 if termination is not None and termination.is_normal else 1


if __name__ == "__main__":
    sys.exit(main())
