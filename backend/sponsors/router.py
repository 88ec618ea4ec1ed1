"""
Sponsor endpoints – ``/api/sponsors``:

    GET     list
    POST    add            (admin)
    PUT     update&id=     (admin)
    DELETE  delete&id=     (admin)
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from core.security import csrf_protected_body, get_client_ip, require_admin
from models.audit_log import AuditLog
from models.sponsor import Sponsor
from models.user import User
from sponsors.schemas import SponsorCreate, SponsorListResponse, SponsorUpdate

router = APIRouter(prefix="/api/sponsors", tags=["sponsors"])


def _get_or_404(sponsor_id: Optional[int], db: Session) -> Sponsor:
    if not sponsor_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sponsor ID required")
    sponsor = db.query(Sponsor).filter(Sponsor.id == sponsor_id).first()
    if not sponsor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sponsor not found")
    return sponsor


def list_sponsors(db: Session) -> list[Sponsor]:
    return db.query(Sponsor).order_by(Sponsor.display_order.asc(), Sponsor.id.asc()).all()


@router.get("")
def read_sponsors(action: str = Query(""), db: Session = Depends(get_db)):
    if action == "list":
        return SponsorListResponse(sponsors=list_sponsors(db))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")


@router.post("")
def create_sponsor(
    request: Request,
    action: str = Query(""),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action != "add":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    data = SponsorCreate.model_validate(body)
    if not data.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sponsor name is required")

    sponsor = Sponsor(
        name=data.name.strip(),
        logo_url=data.logo_url,
        website_url=data.website_url or None,
        display_order=data.display_order,
    )
    db.add(sponsor)
    db.flush()
    db.add(AuditLog(
        admin_id=admin.id,
        action="sponsor_create",
        detail=f"id={sponsor.id}, name={sponsor.name}",
        request_ip=get_client_ip(request),
    ))
    db.commit()
    return {"success": True, "id": sponsor.id}


@router.put("")
def update_sponsor(
    request: Request,
    action: str = Query(""),
    sponsor_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action != "update":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    sponsor = _get_or_404(sponsor_id, db)
    data = SponsorUpdate.model_validate(body)

    if data.name is not None and data.name.strip():
        sponsor.name = data.name.strip()
    if data.logo_url is not None:
        sponsor.logo_url = data.logo_url
    if "website_url" in data.model_fields_set:
        sponsor.website_url = data.website_url or None
    if data.display_order is not None:
        sponsor.display_order = data.display_order

    db.add(AuditLog(
        admin_id=admin.id,
        action="sponsor_update",
        detail=f"id={sponsor.id}, name={sponsor.name}",
        request_ip=get_client_ip(request),
    ))
    db.commit()
    return {"success": True}


@router.delete("")
def delete_sponsor(
    request: Request,
    action: str = Query(""),
    sponsor_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action != "delete":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    sponsor = _get_or_404(sponsor_id, db)
    db.add(AuditLog(
        admin_id=admin.id,
        action="sponsor_delete",
        detail=f"id={sponsor.id}, name={sponsor.name}",
        request_ip=get_client_ip(request),
    ))
    db.delete(sponsor)
    db.commit()
    return {"success": True}
