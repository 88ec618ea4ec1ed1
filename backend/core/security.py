# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Central security module.  All hashing primitives and auth guards live here.
No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Flag hashing / verification              (SHA-256, constant-time compare)
3. CSRF token issuance / validation         (session-bound, constant-time)
4. FastAPI dependency guards                (require_admin, csrf_protected_body)
5. Configured-admin bootstrap               (ensure_configured_admin)
"""

import hashlib
import json
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from sqlalchemy.orm import Session

from core.config import settings
from core.logger import logger
from database import get_db
from models.user import User

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# passlib embeds the salt inside the hash string, so one column is enough.
# The round count comes from settings so the test-suite can turn it down.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Hash a plaintext password with PBKDF2-SHA256."""
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.  A malformed
    stored hash verifies as False.
    """
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# 2.  SHA-256 – flag hashing
# ---------------------------------------------------------------------------


def hash_flag(flag: str) -> str:
    """Return hex( SHA-256( trimmed flag ) ).  Whitespace around the flag is ignored."""
    return hashlib.sha256(flag.strip().encode("utf-8")).hexdigest()


def verify_flag(submitted: str, stored_hash: str) -> bool:
    """Hash *submitted* and compare it to *stored_hash* in constant time."""
    return secrets.compare_digest(hash_flag(submitted), stored_hash or "")


# ---------------------------------------------------------------------------
# 3.  CSRF
# ---------------------------------------------------------------------------
# The token lives in the signed session cookie (SessionMiddleware).  Clients
# fetch it from GET /api/csrf and echo it back as ``csrf_token`` in the JSON
# body of every mutating request (or ``X-CSRF-Token`` for body-less DELETEs).

_CSRF_SESSION_KEY = "csrf_token"


def issue_csrf_token(request: Request) -> str:
    """Generate a fresh token and bind it to the caller's session."""
    token = secrets.token_hex(32)
    request.session[_CSRF_SESSION_KEY] = token
    return token


def validate_csrf_token(request: Request, token: Optional[str]) -> bool:
    expected = request.session.get(_CSRF_SESSION_KEY)
    if not expected or not token or not isinstance(token, str):
        return False
    return secrets.compare_digest(expected, token)


async def csrf_protected_body(request: Request) -> dict:
    """
    Dependency for POST/PUT/DELETE endpoints.  Parses the JSON body, checks
    its ``csrf_token`` against the session, and returns the remaining fields.

    Raises 400 for a body that is not a JSON object, 403 on token mismatch.
    """
    raw = await request.body()
    body: dict = {}
    if raw.strip():
        try:
            body = json.loads(raw)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")
        if not isinstance(body, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")

    token = body.pop("csrf_token", None) or request.headers.get("X-CSRF-Token")
    if not validate_csrf_token(request, token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid CSRF token")
    return body


# ---------------------------------------------------------------------------
# 4.  Admin gate
# ---------------------------------------------------------------------------


def require_admin(
    x_admin_email: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency: the ``X-Admin-Email`` header must name a non-banned user
    whose role is ``admin``.  Returns that User row; raises 403 otherwise.

    The configured admin is a regular admin row (see
    :func:`ensure_configured_admin`), so this is the only check.
    """
    email = (x_admin_email or "").strip()
    admin = None
    if email:
        admin = (
            db.query(User)
            .filter(User.email == email, User.role == "admin", User.is_banned.is_(False))
            .first()
        )
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return admin


# ---------------------------------------------------------------------------
# 5.  Configured admin bootstrap
# ---------------------------------------------------------------------------


def is_configured_admin(email: str, password: str) -> bool:
    """Constant-time match against the ADMIN_EMAIL / ADMIN_PASSWORD pair."""
    if not settings.admin_email or not settings.admin_password:
        return False
    email_ok = secrets.compare_digest(email.encode("utf-8"), settings.admin_email.encode("utf-8"))
    password_ok = secrets.compare_digest(password.encode("utf-8"), settings.admin_password.encode("utf-8"))
    return email_ok and password_ok


def ensure_configured_admin(db: Session) -> Optional[User]:
    """
    Make sure the configured admin exists as an un-banned admin row.
    Returns the row, or None when no admin is configured.
    """
    if not settings.admin_email or not settings.admin_password:
        return None

    admin = db.query(User).filter(User.email == settings.admin_email).first()
    if admin is None:
        admin = User(
            name=settings.admin_name,
            email=settings.admin_email,
            password_hash=hash_password(settings.admin_password),
            role="admin",
            is_banned=False,
            total_points=0,
            challenges_solved=0,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info("Configured admin '%s' created", settings.admin_email)
    elif admin.role != "admin" or admin.is_banned:
        admin.role = "admin"
        admin.is_banned = False
        admin.banned_at = None
        db.commit()
        logger.warning("Configured admin '%s' restored to admin role", settings.admin_email)
    return admin


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"


def client_fingerprint(request: Request) -> str:
    """IP + user agent – the key used by the rate limiter."""
    return f"{get_client_ip(request)}_{request.headers.get('User-Agent', 'unknown')}"
