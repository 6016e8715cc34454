"""Management CLI for local development and support.

Usage:
    python -m candidate_onboarding.cli issue-token <auth_user_id> <email> [--name N] [--admin]
    python -m candidate_onboarding.cli reset-onboarding <email>
"""

import argparse
import sys

from sqlalchemy import create_engine, update

from candidate_onboarding.auth.jwt import create_access_token
from candidate_onboarding.config import settings
from candidate_onboarding.models.user import OnboardingStatus, User


def issue_token(auth_user_id: str, email: str, name: str | None = None, is_admin: bool = False) -> str:
    """Mint a bearer token the service will accept (dev only)."""
    return create_access_token(auth_user_id, email, name=name, is_admin=is_admin)


def reset_onboarding(email: str) -> int:
    """Put an account back at step 1 with no saved progress."""
    engine = create_engine(settings.database_url_sync)
    with engine.begin() as conn:
        result = conn.execute(
            update(User)
            .where(User.email == email)
            .values(
                onboarding_status=OnboardingStatus.PENDING,
                onboarding_step=1,
                onboarding_completed_at=None,
                onboarding_metadata=None,
            )
        )
        return result.rowcount


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="candidate_onboarding.cli")
    sub = parser.add_subparsers(dest="command", required=True)

    tok = sub.add_parser("issue-token", help="Print a signed access token")
    tok.add_argument("auth_user_id")
    tok.add_argument("email")
    tok.add_argument("--name")
    tok.add_argument("--admin", action="store_true")

    reset = sub.add_parser("reset-onboarding", help="Restart onboarding for an account")
    reset.add_argument("email")

    args = parser.parse_args(argv)

    if args.command == "issue-token":
        print(issue_token(args.auth_user_id, args.email, args.name, args.admin))
        return 0

    count = reset_onboarding(args.email)
    if not count:
        print(f"No account found for {args.email}")
        return 1
    print(f"Reset onboarding for {args.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
