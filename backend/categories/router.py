# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Category endpoints – ``/api/categories``:

    GET     list
    POST    add            (admin)
    PUT     update&id=     (admin)
    DELETE  delete&id=     (admin)

Challenges refer to a category by *name*.  Renaming a category renames it
on its challenges; deleting one that is still used is refused.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from core.security import csrf_protected_body, get_client_ip, require_admin
from models.audit_log import AuditLog
from models.category import Category
from models.challenge import Challenge
from models.user import User
from categories.schemas import CategoryCreate, CategoryListResponse, CategoryUpdate

router = APIRouter(prefix="/api/categories", tags=["categories"])


def _require_id(category_id: Optional[int]) -> int:
    if not category_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category ID required")
    return category_id


def _get_or_404(category_id: int, db: Session) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


def _clean_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name is required")
    return name


def _ensure_unique(name: str, db: Session, exclude_id: Optional[int] = None) -> None:
    q = db.query(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        q = q.filter(Category.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists")


@router.get("")
def read_categories(action: str = Query(""), db: Session = Depends(get_db)):
    if action == "list":
        return CategoryListResponse(categories=db.query(Category).order_by(Category.name.asc()).all())
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")


@router.post("")
def create_category(
    request: Request,
    action: str = Query(""),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action != "add":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    data = CategoryCreate.model_validate(body)
    name = _clean_name(data.name)
    _ensure_unique(name, db)

    category = Category(name=name, description=data.description)
    db.add(category)
    db.flush()
    db.add(AuditLog(
        admin_id=admin.id,
        action="category_create",
        detail=f"id={category.id}, name={name}",
        request_ip=get_client_ip(request),
    ))
    db.commit()
    return {"success": True, "id": category.id}


@router.put("")
def update_category(
    request: Request,
    action: str = Query(""),
    category_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action != "update":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    category = _get_or_404(_require_id(category_id), db)
    data = CategoryUpdate.model_validate(body)

    if data.name is not None:
        new_name = _clean_name(data.name)
        if new_name != category.name:
            _ensure_unique(new_name, db, exclude_id=category.id)
            # Challenges carry the name, not the id
            db.query(Challenge).filter(Challenge.category == category.name).update(
                {Challenge.category: new_name}, synchronize_session=False
            )
            category.name = new_name
    if "description" in data.model_fields_set:
        category.description = data.description

    db.add(AuditLog(
        admin_id=admin.id,
        action="category_update",
        detail=f"id={category.id}, name={category.name}",
        request_ip=get_client_ip(request),
    ))
    db.commit()
    return {"success": True}


@router.delete("")
def delete_category(
    request: Request,
    action: str = Query(""),
    category_id: Optional[int] = Query(None, alias="id"),
    admin: User = Depends(require_admin),
    body: dict = Depends(csrf_protected_body),
    db: Session = Depends(get_db),
):
    if action != "delete":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")

    category = _get_or_404(_require_id(category_id), db)

    in_use = db.query(func.count(Challenge.id)).filter(Challenge.category == category.name).scalar()
    if in_use:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete category: it is used by challenges",
        )

    db.add(AuditLog(
        admin_id=admin.id,
        action="category_delete",
        detail=f"id={category.id}, name={category.name}",
        request_ip=get_client_ip(request),
    ))
    db.delete(category)
    db.commit()
    return {"success": True}
