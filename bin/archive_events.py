# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Archive every active event whose end date has passed.

Meant for cron (or any external scheduler), e.g. every five minutes:
    */5 * * * *  cd /opt/ctf && python bin/archive_events.py

Each archived event's challenges move back to the general pool.  Progress
is written to the application log.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from core.logger import logger                      # noqa: E402
from database import SessionLocal                   # noqa: E402
from events.service import archive_expired_events   # noqa: E402


def main() -> int:
    logger.info("Event archive job starting")
    db = SessionLocal()
    try:
        archived = archive_expired_events(db)
    except Exception:
        db.rollback()
        logger.exception("Event archive job failed")
        return 1
    finally:
        db.close()
    print(f"[archive_events] {len(archived)} event(s) archived.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
