import argparse
import getpass
import logging
import os
import sys

# Ensure we can import portal modules
sys.path.append(os.getcwd())

from portal.core.config import settings
from portal.core.init_system import ensure_admin
from portal.database import SessionLocal, init_db

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_admin_user(email: str, password: str, reset: bool = False):
    if len(password) < settings.min_password_length:
        logger.error(f"Password must be at least {settings.min_password_length} characters")
        return 1

    init_db()
    db = SessionLocal()
    try:
        ensure_admin(db, email, password, reset_password=reset)
        logger.info(f"Admin account ready. You can now login as {email}.")
        return 0
    except Exception as e:
        logger.error(f"Error creating admin user: {e}")
        db.rollback()
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the portal admin account, or reset its password.")
    parser.add_argument("--email", default=settings.admin_email)
    parser.add_argument("--reset", action="store_true", help="overwrite the password of an existing admin")
    args = parser.parse_args()

    if not args.email:
        parser.error("--email is required when ADMIN_EMAIL is not set")
    password = settings.admin_password or getpass.getpass("Admin password: ")
    sys.exit(create_admin_user(args.email, password, reset=args.reset))
