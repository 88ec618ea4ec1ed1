# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – CSRF token issuance, login, registration.

Security notes
--------------
* Login returns the *same* error message whether the email doesn't exist or
  the password is wrong.  This prevents user-enumeration attacks.
* Both login and register are rate limited per client fingerprint and
  require the session's CSRF token.
* No identity token is issued.  The client keeps the returned user; admins
  echo their email in ``X-Admin-Email`` and are re-checked on every request.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from core.config import settings
from core.logger import logger
from core.ratelimit import rate_limit
from core.sanitize import is_valid_email, sanitize_input
from core.security import (
    csrf_protected_body,
    ensure_configured_admin,
    get_client_ip,
    hash_password,
    is_configured_admin,
    issue_csrf_token,
    verify_password,
)
from models.user import User
from models.audit_log import AuditLog
from auth.schemas import (
    CsrfTokenResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)

router = APIRouter(prefix="/api", tags=["auth"])

# Generic message used for both "no such email" and "wrong password"
_LOGIN_FAIL = "Invalid credentials"


def _validate_new_password(pw: str) -> str | None:
    """
    Return an error string if the password does not meet the minimum policy,
    or None if it is acceptable.
    """
    if len(pw) < settings.password_min_length:
        return f"Password must be at least {settings.password_min_length} characters long"
    return None


# ---------------------------------------------------------------------------
# GET /api/csrf
# ---------------------------------------------------------------------------


@router.get("/csrf", response_model=CsrfTokenResponse)
def csrf_token(request: Request):
    """Issue a CSRF token bound to the caller's session."""
    return CsrfTokenResponse(token=issue_csrf_token(request))


# ---------------------------------------------------------------------------
# POST /api/auth?action=login|register
# ---------------------------------------------------------------------------


@router.post(
    "/auth",
    dependencies=[Depends(rate_limit("auth", "rate_limit_auth_requests"))],
)
def auth_action(
    request: Request,
    action: str = Query(""),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action == "login":
        return _login(LoginRequest.model_validate(body), request, db)
    if action == "register":
        return _register(RegisterRequest.model_validate(body), db)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")


def _login(body: LoginRequest, request: Request, db: Session) -> dict:
    """Authenticate against the configured admin pair, then the users table."""
    email = body.email.strip()
    if not email or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required",
        )

    if is_configured_admin(email, body.password):
        user = ensure_configured_admin(db)
    else:
        user = db.query(User).filter(User.email == email).first()
        # Unified failure path – no information leaks about whether the email exists
        if not user or not verify_password(body.password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_LOGIN_FAIL)

    if user.is_banned:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is banned")

    db.add(AuditLog(
        admin_id=None,
        target_user_id=user.id,
        action="user_login",
        request_ip=get_client_ip(request),
    ))
    db.commit()
    db.refresh(user)

    logger.info("Login | user_id=%s admin=%s", user.id, user.role == "admin")
    return LoginResponse(is_admin=user.role == "admin", user=user).model_dump(by_alias=True)


def _register(body: RegisterRequest, db: Session) -> RegisterResponse:
    """Validate, check uniqueness, insert with a hashed password."""
    name = sanitize_input(body.name)
    email = body.email.strip()
    password = body.password

    if not name or not email or not password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="All fields are required")

    if not is_valid_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email format")

    err = _validate_new_password(password)
    if err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=err)

    # Uniqueness check
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role="user",
        is_banned=False,
        total_points=0,
        challenges_solved=0,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    db.refresh(user)

    logger.info("Registered user_id=%s", user.id)
    return RegisterResponse(user=user)
