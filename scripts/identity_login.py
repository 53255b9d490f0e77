#!/usr/bin/env python3
"""
Log in to the MyFitnessPal identity service and print the resulting session.

Client credentials come from IDENTITY_CLIENT_ID / IDENTITY_CLIENT_SECRET (or a
.env file). With --refresh-token the script refreshes an existing session for
--user-id instead of logging in.
"""

import argparse
import getpass
import json
import os
import sys
from typing import Optional

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from identity_client.app import IdentityClient  # noqa: E402
from shared.config import get_config  # noqa: E402
from shared.errors import IdentityClientError  # noqa: E402
from shared.logging import configure_logging, get_logger  # noqa: E402


def run(
    *,
    username: Optional[str],
    user_id: Optional[str],
    refresh_token: Optional[str],
) -> dict:
    """Authenticate and return the session as a dict."""
    config = get_config()
    if not config.client_id or not config.client_secret:
        raise SystemExit("IDENTITY_CLIENT_ID and IDENTITY_CLIENT_SECRET must be set")

    with IdentityClient.create(config.client_id, config.client_secret, config=config) as client:
        if refresh_token:
            if not user_id:
                raise SystemExit("--user-id is required with --refresh-token")
            session = client.refresh(user_id, refresh_token)
        else:
            if not username:
                raise SystemExit("--username is required to log in")
            password = os.environ.get("IDENTITY_PASSWORD") or getpass.getpass("Password: ")
            session = client.login(username, password)

    return session.to_dict()


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--username", help="Account username or email")
    parser.add_argument("--user-id", help="Identity user id (for --refresh-token)")
    parser.add_argument("--refresh-token", help="Refresh an existing session instead of logging in")
    parser.add_argument("--log-level", default="warning", help="Log level (default: warning)")
    args = parser.parse_args()

    configure_logging("identity", args.log_level)
    logger = get_logger("identity.scripts.login")

    try:
        session = run(username=args.username, user_id=args.user_id, refresh_token=args.refresh_token)
    except IdentityClientError as exc:
        logger.error("Authentication failed", code=exc.code, error=exc.message)
        print(json.dumps(exc.to_response().model_dump(), indent=2), file=sys.stderr)
        return 1

    print(json.dumps(session, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
