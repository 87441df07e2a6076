"""
Manager ownership chain.

A manager may see records of: themselves, every account they created, and the
accounts created by the admins they created. That is two explicit query
stages (manager -> direct reports, delegated admins -> their users) and never
more.
"""
from typing import Set
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from siteledger.models.user import Role, User

logger = logging.getLogger(__name__)


def resolve_allowed_usernames(db: Session, manager_id: int, manager_username: str) -> Set[str]:
    """
    Compute the usernames whose records a manager may view.

    Args:
        db: Global database session
        manager_id: id of the manager account
        manager_username: username of the manager account

    Returns:
        {manager_username} | direct reports | users of delegated admins.
        On any lookup failure only {manager_username}.
    """
    try:
        # Stage 1: accounts created by the manager
        direct_reports = db.query(User.id, User.username, User.role).filter(
            User.created_by_id == manager_id
        ).all()
        allowed = {row.username for row in direct_reports}

        # Stage 2: accounts created by the manager's admins
        admin_ids = [row.id for row in direct_reports if row.role == Role.ADMIN.value]
        if admin_ids:
            delegated = db.query(User.username).filter(User.created_by_id.in_(admin_ids)).all()
            allowed.update(row.username for row in delegated)
    except SQLAlchemyError as e:
        logger.error(f"Error getting manager owned usernames for {manager_username}: {e}")
        return {manager_username}

    allowed.add(manager_username)
    return allowed
