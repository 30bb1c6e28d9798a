"""Create an administrator account or promote an existing customer."""
from __future__ import annotations

import argparse
import logging
import sys

from selective_trading.core.errors import StorageUnavailable
from selective_trading.db.guard import storage_guard
from selective_trading.db.session import SessionLocal, create_tables
from selective_trading.models import User
from selective_trading.utils.phone import normalize_phone

logger = logging.getLogger(__name__)


def create_admin(phone: str, email: str, name: str) -> User:
    """Insert an admin account, or grant admin rights to the existing one."""
    phone = normalize_phone(phone)
    db = SessionLocal()
    try:
        with storage_guard(db, "save the admin account"):
            user = db.query(User).filter(User.phone == phone).first()
            if user is None:
                user = User(phone=phone, email=email.strip().lower(), name=name, is_admin=True)
                db.add(user)
                logger.info("Creating admin account for %s", phone)
            else:
                user.is_admin = True
                user.is_active = True
                logger.info("Promoting existing account %s to admin", user.id)
            db.commit()
            db.refresh(user)
        return user
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or promote an administrator")
    parser.add_argument("--phone", required=True, help="Phone number used to sign in")
    parser.add_argument("--email", required=True, help="Address that receives login codes")
    parser.add_argument("--name", default="Admin", help="Display name")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables first (development databases without migrations).",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        if args.create_tables:
            create_tables()
        user = create_admin(args.phone, args.email, args.name)
    except (ValueError, StorageUnavailable) as exc:
        print(f"[create_admin] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"[create_admin] admin {user.phone} ready (id={user.id})")


if __name__ == "__main__":
    main()
