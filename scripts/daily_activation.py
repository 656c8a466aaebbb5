"""Run the daily student activation once, e.g. from cron instead of the in-app scheduler.

Usage: python -m scripts.daily_activation [--date YYYY-MM-DD]
"""
import argparse
import sys
from datetime import date

from app.core.database import SessionLocal
from app.services.activation import ActivationService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Activate students created on a given day")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Run date (default: today)")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        summary = ActivationService(db).run_daily_activation(args.date)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print(
        f"{summary.run_date}: activated {summary.activated}, deactivated {summary.deactivated} "
        f"({summary.active_students}/{summary.total_students} active)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
