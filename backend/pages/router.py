# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Server-rendered HTML pages.

Reads are rendered here straight from the database; every write (login,
register, flag submission, admin actions) is a JSON call made by
``frontend/static/app.js`` against the ``/api`` routers.
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from database import get_db
from core.config import settings
from challenges.router import list_challenges
from events.service import active_event
from models.category import Category
from models.challenge import Challenge
from models.event import Event
from sponsors.router import list_sponsors
from submissions.scoring import event_leaderboard, global_leaderboard

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "frontend" / "templates"
templates = Jinja2Templates(directory=str(_TEMPLATE_DIR))

router = APIRouter(tags=["pages"], include_in_schema=False)

# Difficulty choices shown in the /play filter
_DIFFICULTIES = ["Easy", "Medium", "Hard"]


def _not_found(request: Request, what: str):
    return templates.TemplateResponse(
        request, "not_found.html", {"what": what}, status_code=404
    )


@router.get("/", response_class=HTMLResponse)
def index(request: Request, db: Session = Depends(get_db)):
    return templates.TemplateResponse(request, "index.html", {
        "event": active_event(db),
        "sponsors": list_sponsors(db),
    })


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {})


@router.get("/register", response_class=HTMLResponse)
def register_page(request: Request):
    return templates.TemplateResponse(request, "register.html", {
        "password_min_length": settings.password_min_length,
    })


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request):
    # The logged-in user lives in localStorage; app.js loads the profile
    return templates.TemplateResponse(request, "dashboard.html", {})


@router.get("/play", response_class=HTMLResponse)
def play(
    request: Request,
    category: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Active challenges that belong to no event."""
    challenges = list_challenges(
        db,
        category=category or None,
        difficulty=difficulty or None,
        general_pool=True,
    )
    return templates.TemplateResponse(request, "play.html", {
        "challenges": challenges,
        "categories": db.query(Category).order_by(Category.name.asc()).all(),
        "difficulties": _DIFFICULTIES,
        "selected_category": category or "",
        "selected_difficulty": difficulty or "",
    })


@router.get("/challenges/{challenge_id}", response_class=HTMLResponse)
def challenge_detail(request: Request, challenge_id: int, db: Session = Depends(get_db)):
    challenge = db.query(Challenge).filter(Challenge.id == challenge_id).first()
    if not challenge or challenge.status != "active":
        return _not_found(request, "Challenge")
    return templates.TemplateResponse(request, "challenge_detail.html", {
        "challenge": challenge,
        "flag_prefix": settings.flag_prefix,
    })


@router.get("/events/{event_id}", response_class=HTMLResponse)
def event_detail(request: Request, event_id: int, db: Session = Depends(get_db)):
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        return _not_found(request, "Event")
    return templates.TemplateResponse(request, "event_detail.html", {
        "event": event,
        "challenges": list_challenges(db, event_id=event.id),
    })


@router.get("/events/{event_id}/scoreboard", response_class=HTMLResponse)
def event_scoreboard(request: Request, event_id: int, db: Session = Depends(get_db)):
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        return _not_found(request, "Event")
    return templates.TemplateResponse(request, "scoreboard.html", {
        "title": f"{event.name} – Scoreboard",
        "leaderboard": event_leaderboard(db, event.id),
        "poll_url": f"/api/events?action=scoreboard&id={event.id}",
        # Archived events are frozen; only running ones refresh
        "live": event.status == "active",
    })


@router.get("/scoreboard", response_class=HTMLResponse)
def scoreboard(request: Request, db: Session = Depends(get_db)):
    return templates.TemplateResponse(request, "scoreboard.html", {
        "title": "Scoreboard",
        "leaderboard": global_leaderboard(db),
        "poll_url": "/api/users?action=scoreboard",
        "live": True,
    })


@router.get("/admin", response_class=HTMLResponse)
def admin_console(request: Request):
    # Every panel is filled by app.js with X-Admin-Email requests
    return templates.TemplateResponse(request, "admin.html", {})
