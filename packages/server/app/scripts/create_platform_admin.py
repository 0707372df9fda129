"""
Grant platform-admin to a user and print a local session token for them.

    client-hub-grant-admin --user-id user_01ABC --email ops@example.com
"""

import argparse
import asyncio
from typing import Optional

from app.core.auth import CallerIdentity, create_session_token
from app.core.database import get_session_context, init_db
from app.services.membership import grant_platform_admin


async def grant(user_id: str, create_tables: bool) -> None:
    if create_tables:
        await init_db()
    async with get_session_context() as session:
        await grant_platform_admin(user_id, session)
    print(f"Platform admin granted: {user_id}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Grant platform-admin and mint a dev session token.")
    parser.add_argument("--user-id", required=True, help="Identity-provider user id")
    parser.add_argument("--email", help="Email claim for the session token")
    parser.add_argument("--first-name")
    parser.add_argument("--last-name")
    parser.add_argument("--init-db", action="store_true", help="Create tables first (development only)")
    args = parser.parse_args(argv)

    asyncio.run(grant(args.user_id, args.init_db))

    token = create_session_token(
        CallerIdentity(
            user_id=args.user_id,
            email=args.email,
            first_name=args.first_name,
            last_name=args.last_name,
        )
    )
    print(f"Session token (Authorization: Bearer ...):\n{token}")


if __name__ == "__main__":
    main()
