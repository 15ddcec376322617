# scripts/run_scheduler.py
# Sweep de publicaciones programadas (cron / Heroku Scheduler):
#   python scripts/run_scheduler.py --limit 50
#   python scripts/run_scheduler.py --dry-run
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# raíz del repo en sys.path para poder importar folio.* al correr como script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy.orm import Session

from folio.core.logging import configure_logging
from folio.core.settings import settings
from folio.db.session import SessionLocal
from folio.models.audit import PublicationSource
from folio.utils.timezones import now_utc


def run(limit: int, source: str, dry_run: bool = False) -> int:
    # import tardío: el workflow arrastra el dispatcher y sus dependencias
    from folio.services.scheduler_service import find_due_revision_ids, publish_due_revisions

    db: Session = SessionLocal()
    try:
        if dry_run:
            due = find_due_revision_ids(db, now=now_utc(), limit=limit)
            print(f"[DRY-RUN] due={len(due)} ids={due}")
            return 0

        result = publish_due_revisions(db, limit, source=source)
        line = f"[OK] published={result.published} failed={result.failed} skipped={result.skipped}"
        if result.revision_ids:
            line += f" ids={result.revision_ids}"
        print(line)
        return 1 if result.failed else 0
    finally:
        db.close()


def main():
    ap = argparse.ArgumentParser(
        description="Auto-publish scheduled revisions whose time has come.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument("--limit", type=int, default=settings.SCHEDULER_BATCH_LIMIT, help="Max revisions per sweep")
    ap.add_argument(
        "--source",
        default=PublicationSource.SCHEDULER.value,
        choices=[s.value for s in PublicationSource],
        help="Source recorded in the publication log",
    )
    ap.add_argument("--dry-run", action="store_true", help="Only list due revision ids")
    args = ap.parse_args()

    if args.limit < 1:
        ap.error("--limit must be >= 1")

    configure_logging()
    sys.exit(run(limit=args.limit, source=args.source, dry_run=args.dry_run))


if __name__ == "__main__":
    main()
