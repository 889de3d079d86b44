"""
app/services/session_service.py

Purpose: Session and status management

- Generates opaque registration session IDs
- Creates and looks up the user behind a session
- Enforces forward-only status transitions

Functions here stage changes on the given session and never commit;
the caller owns the transaction.
"""

import secrets
import string
import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.core.logging import get_logger, LogContext
from app.flow.states import RegistrationStatus, is_valid_transition
from app.models.user import User
from app.models import form_submission  # noqa: F401  (registers the User.submissions target)
from utils.time_utils import utc_now

logger = get_logger(__name__)

SESSION_PREFIX = "udyam"
SESSION_SUFFIX_LENGTH = 9
SESSION_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def generate_timestamped_id(prefix: str) -> str:
    """<prefix>_<13-digit millisecond epoch>_<9 lowercase alphanumerics>"""
    timestamp_ms = time.time_ns() // 1_000_000
    suffix = "".join(
        secrets.choice(SESSION_SUFFIX_ALPHABET) for _ in range(SESSION_SUFFIX_LENGTH)
    )
    return f"{prefix}_{timestamp_ms:013d}_{suffix}"


def generate_session_id() -> str:
    """
    Generates a new session ID.

    Format: udyam_<13-digit millisecond epoch>_<9 lowercase alphanumerics>
    Example: udyam_1734567890123_k3j9x0a2b
    """
    return generate_timestamped_id(SESSION_PREFIX)


async def get_user_by_session(db: AsyncSession, session_id: str) -> Optional[User]:
    """
    Retrieves the user for a session ID.

    Returns:
        User or None if the session is unknown
    """
    if not session_id:
        return None

    result = await db.execute(select(User).where(User.session_id == session_id))
    return result.scalar_one_or_none()


async def get_or_create_user(db: AsyncSession, session_id: Optional[str] = None) -> User:
    """
    Returns the user for session_id, or stages a new user with a fresh
    session ID when session_id is missing or unknown.

    Args:
        db: Database session
        session_id: Existing session ID, if the client has one

    Returns:
        User (new users are flushed so they have an id)
    """
    user = await get_user_by_session(db, session_id) if session_id else None
    if user:
        return user

    new_session_id = generate_session_id()
    with LogContext(session_id=new_session_id):
        user = User(session_id=new_session_id, status=RegistrationStatus.IN_PROGRESS.value)
        db.add(user)
        await db.flush()

        if session_id:
            logger.info(f"Unknown session {session_id}, started a new one")
        else:
            logger.info("Creating new registration session")

    return user


async def update_user_status(db: AsyncSession, user: User, new_status: RegistrationStatus) -> bool:
    """
    Moves a user to new_status.

    Args:
        db: Database session
        user: User to update
        new_status: Target status

    Returns:
        True if the status changed, False if it was already new_status

    Raises:
        ValidationError: If the change would move the registration backwards
    """
    current_status = RegistrationStatus(user.status)

    if not is_valid_transition(current_status, new_status):
        logger.warning(
            f"Invalid status transition attempted for {user.session_id}: "
            f"{current_status.value} -> {new_status.value}"
        )
        raise ValidationError(
            f"Invalid status transition: {current_status.value} -> {new_status.value}"
        )

    if current_status == new_status:
        return False

    user.status = new_status.value
    user.updated_at = utc_now()
    await db.flush()

    logger.info(f"Status updated for {user.session_id}: {current_status.value} -> {new_status.value}")
    return True
