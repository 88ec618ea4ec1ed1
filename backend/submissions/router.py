# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
POST /api/submit_flag – flag submission.

Rate limited per client fingerprint (``flags`` scope) and CSRF protected.
Scoring itself lives in :mod:`submissions.scoring`.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from core.ratelimit import rate_limit
from core.security import csrf_protected_body
from submissions.schemas import SubmitFlagRequest, SubmitFlagResponse
from submissions.scoring import submit_flag

router = APIRouter(prefix="/api", tags=["submissions"])


@router.post(
    "/submit_flag",
    response_model=SubmitFlagResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(rate_limit("flags", "rate_limit_flag_requests"))],
)
def submit(
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    """Check a flag for a challenge on behalf of ``user_id``."""
    req = SubmitFlagRequest.model_validate(body)
    if not req.challenge_id or not req.user_id or not req.flag.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    return submit_flag(db, req.challenge_id, req.user_id, req.flag)
