"""
Cookie sessions for admins and guests.

Admins log in with email/password and receive a signed ``session_id``
cookie valid for two hours, renewed on every authenticated request. Guests
receive a signed ``rsvp_session`` cookie after looking up their RSVP code.
"""

import logging
from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from .config import ADMIN_SESSION_MAX_AGE, GUEST_SESSION_MAX_AGE, IS_PRODUCTION
from .database import get_db
from .errors import AppError
from .models import Guest, User
from .security_utils import generate_timed_token, verify_timed_token

logger = logging.getLogger(__name__)

ADMIN_COOKIE_NAME = "session_id"
GUEST_COOKIE_NAME = "rsvp_session"
ADMIN_SALT = "admin-session"
GUEST_SALT = "guest-session"


def set_admin_session(response: Response, user: User) -> None:
    token = generate_timed_token({"user_id": user.id}, salt=ADMIN_SALT)
    response.set_cookie(
        ADMIN_COOKIE_NAME,
        token,
        max_age=ADMIN_SESSION_MAX_AGE,
        httponly=True,
        samesite="strict",
        secure=IS_PRODUCTION,
        path="/",
    )


def clear_admin_session(response: Response) -> None:
    response.delete_cookie(ADMIN_COOKIE_NAME, path="/")


def set_guest_session(response: Response, guest: Guest) -> None:
    token = generate_timed_token({"guest_id": guest.id, "code": guest.code}, salt=GUEST_SALT)
    response.set_cookie(
        GUEST_COOKIE_NAME,
        token,
        max_age=GUEST_SESSION_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=IS_PRODUCTION,
        path="/",
    )


def get_current_user(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> User:
    """Admin dependency: validates the session cookie and slides its expiry."""
    token = request.cookies.get(ADMIN_COOKIE_NAME)
    if not token:
        raise AppError(401, "Not authenticated", "UNAUTHORIZED")

    data = verify_timed_token(token, salt=ADMIN_SALT, max_age=ADMIN_SESSION_MAX_AGE)
    if not data or "user_id" not in data:
        raise AppError(401, "Session expired", "UNAUTHORIZED")

    user = db.query(User).filter(User.id == data["user_id"]).first()
    if not user:
        logger.warning(f"⚠️ Session for unknown user id {data['user_id']}")
        raise AppError(401, "Not authenticated", "UNAUTHORIZED")

    set_admin_session(response, user)
    return user


def get_optional_guest(request: Request, db: Session = Depends(get_db)) -> Optional[Guest]:
    """Guest from the RSVP session cookie, or None."""
    token = request.cookies.get(GUEST_COOKIE_NAME)
    if not token:
        return None
    data = verify_timed_token(token, salt=GUEST_SALT, max_age=GUEST_SESSION_MAX_AGE)
    if not data or "guest_id" not in data:
        return None
    return db.query(Guest).filter(Guest.id == data["guest_id"]).first()
