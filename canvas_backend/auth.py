"""
Admin account helpers: first-run bootstrap, credential checks and session tokens.

Passwords are hashed here before they reach the store; the store itself
never sees a plain password.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from typing import Optional

import bcrypt
import jwt

from canvas_backend.config import Settings
from canvas_backend.records import Record, format_timestamp, utc_now
from canvas_backend.schemas import AdminCreate, AdminPatch
from canvas_backend.store import StorageFacade

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10
JWT_ALGORITHM = "HS256"

_DURATION = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def hash_password(password: str) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    ).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def ensure_default_admin(admins: StorageFacade, settings: Settings) -> Optional[Record]:
    """Create the first super-admin if no admin exists yet."""
    if admins.find():
        logger.info("Admin user(s) already exist")
        return None

    admin = admins.create(
        AdminCreate(
            username=settings.admin_username,
            email=settings.admin_email,
            password=hash_password(settings.admin_password),
            role="super-admin",
        )
    )
    if admin is None:
        logger.error("Could not store the default admin account")
        return None
    logger.info(
        "Default admin %r created; change its password after first login",
        admin["username"],
    )
    return admin


def authenticate(admins: StorageFacade, login: str, password: str) -> Optional[Record]:
    """
    Look an admin up by email or username and check the password.

    Returns the updated admin record (with ``lastLogin`` refreshed) or None.
    """
    admin = admins.find_one({"email": login}) or admins.find_one({"username": login})
    if admin is None or not admin.get("isActive", True):
        return None
    if not verify_password(password, admin.get("password", "")):
        return None
    updated = admins.update(admin["_id"], AdminPatch(last_login=format_timestamp(utc_now())))
    return updated or admin


def parse_expires_in(value: str) -> timedelta:
    """Parse ``"24h"``-style lifetimes: plain seconds or an s/m/h/d suffix."""
    match = _DURATION.match(str(value))
    if not match:
        raise ValueError(f"Invalid token lifetime: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def issue_token(admin: Record, settings: Settings) -> str:
    now = utc_now()
    claims = {
        "sub": str(admin["_id"]),
        "iat": now,
        "exp": now + parse_expires_in(settings.jwt_expires_in),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def admin_id_from_token(token: str, settings: Settings) -> str:
    """Return the admin id a token was issued for. Raises jwt.InvalidTokenError."""
    claims = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[JWT_ALGORITHM],
        options={"require": ["exp", "iat", "sub"]},
    )
    return claims["sub"]
