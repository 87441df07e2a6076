#!/usr/bin/env python3
"""
Manager Account Bootstrap Script

Managers sit at the top of the account hierarchy and cannot be registered
through the API. Run this once per deployment (after migrations) to create
the first manager; the manager then registers admins through the API.

Credentials come from the command line, falling back to MANAGER_USERNAME,
MANAGER_PASSWORD and MANAGER_COMPANY in the environment / backend/.env.

Usage:
    cd backend
    python -m scripts.create_manager --username boss --password 's3cret!'

    # Options:
    python -m scripts.create_manager --company "Acme"   # Company label for the account
    python -m scripts.create_manager --dry-run          # Show what would be done
"""

import argparse
import logging
import os
import sys
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from siteledger.core.database import SessionLocal, create_db_and_tables
from siteledger.core.security import hash_password
from siteledger.models.user import Role, User

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_manager(
    db: Session,
    username: str,
    password: str,
    company: Optional[str] = None,
    dry_run: bool = False
) -> Optional[User]:
    """Create a manager account; returns None when the username is already taken by staff."""
    existing = db.query(User).filter(
        func.lower(User.username) == username.lower(),
        User.role.in_([Role.ADMIN.value, Role.MANAGER.value])
    ).first()
    if existing is not None:
        logger.warning(f"Staff account '{existing.username}' already exists ({existing.role})")
        return None

    if dry_run:
        logger.info(f"[DRY RUN] Would create manager '{username}' (company: {company or 'not specified'})")
        return None

    manager = User(
        username=username,
        password_hash=hash_password(password),
        role=Role.MANAGER.value,
        site="",
        company=company or ""
    )
    db.add(manager)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Manager '{username}' was created concurrently")
        return None
    db.refresh(manager)
    return manager


def main():
    """Main entry point"""
    load_dotenv(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), '.env'))

    parser = argparse.ArgumentParser(
        description='Create the initial manager account',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        '--username',
        type=str,
        default=os.getenv('MANAGER_USERNAME'),
        help='Manager username (default: $MANAGER_USERNAME)'
    )
    parser.add_argument(
        '--password',
        type=str,
        default=os.getenv('MANAGER_PASSWORD'),
        help='Manager password (default: $MANAGER_PASSWORD)'
    )
    parser.add_argument(
        '--company',
        type=str,
        default=os.getenv('MANAGER_COMPANY'),
        help='Company label stored on the account'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without making changes'
    )

    args = parser.parse_args()

    if not args.username or not args.password:
        parser.error('--username and --password are required (or set MANAGER_USERNAME / MANAGER_PASSWORD)')
    if len(args.password) < 6:
        parser.error('password must be at least 6 characters')

    logger.info("=" * 60)
    logger.info("MANAGER ACCOUNT BOOTSTRAP")
    logger.info("=" * 60)

    create_db_and_tables()
    db = SessionLocal()

    try:
        manager = create_manager(db, args.username, args.password, args.company, args.dry_run)
        if manager is not None:
            logger.info(f"Manager account created: id={manager.id} username={manager.username}")
        elif not args.dry_run:
            sys.exit(1)
    finally:
        db.close()


if __name__ == '__main__':
    main()
