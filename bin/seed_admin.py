# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates (or restores) the configured admin user.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME from
etc/app.conf.  The application performs the same step on startup, so this
is only needed when the admin row must exist before the first boot.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from core.config import settings                     # noqa: E402
from core.security import ensure_configured_admin    # noqa: E402
from database import SessionLocal                    # noqa: E402


def seed():
    if not settings.admin_email or not settings.admin_password:
        print("[seed_admin] ADMIN_EMAIL or ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return

    db = SessionLocal()
    try:
        admin = ensure_configured_admin(db)
        print(f"[seed_admin] Admin '{admin.email}' ready (id={admin.id}).")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
