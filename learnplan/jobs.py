"""Scheduled jobs for learnplan.

Run from cron, e.g. `python -m learnplan.jobs reset-weekly` every Monday at
00:00 UTC and `python -m learnplan.jobs reset-monthly` on the first of the
month. Leaderboards are generated before the matching reset so the finished
period is captured.
"""

import argparse
import logging
import sys
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from learnplan.accounting.stats_jobs import (
    generate_leaderboard,
    reset_monthly_learning_time,
    reset_weekly_learning_time,
)
from learnplan.database.database import SessionLocal, init_db
from learnplan.models.leaderboard import LeaderboardType

logger = logging.getLogger(__name__)


def _leaderboard_job(leaderboard_type: LeaderboardType) -> Callable[[Session], str]:
    def run(db: Session) -> str:
        board = generate_leaderboard(db, leaderboard_type)
        return f"{board.type} leaderboard for {board.period}: {len(board.entries)} entries"
    return run


JOBS: Dict[str, Callable[[Session], str]] = {
    "reset-weekly": lambda db: f"reset weekly learning time for {reset_weekly_learning_time(db)} users",
    "reset-monthly": lambda db: f"reset monthly learning time for {reset_monthly_learning_time(db)} users",
    "leaderboard-weekly": _leaderboard_job(LeaderboardType.WEEKLY_TIME),
    "leaderboard-monthly": _leaderboard_job(LeaderboardType.MONTHLY_TIME),
    "leaderboard-streak": _leaderboard_job(LeaderboardType.STREAK),
}


def run_job(name: str, db: Session) -> str:
    """Run one job by name and return a one-line summary."""
    job = JOBS.get(name)
    if job is None:
        raise ValueError(f"Unknown job: {name}")
    return job(db)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="learnplan.jobs", description="Run a scheduled learnplan job")
    parser.add_argument("job", choices=sorted(JOBS))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    init_db()
    db = SessionLocal()
    try:
        summary = run_job(args.job, db)
    except Exception as e:
        logger.error(f"Job {args.job} failed: {type(e).__name__}: {str(e)}")
        return 1
    finally:
        db.close()

    logger.info(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
