"""
Maintenance job that audits and rebuilds the forum's cached counters.

Run it after a crash or a manual data fix to:
1. Recompute each post's comment total and last activity
2. Recompute each post's vote tallies from the vote ledger
3. Recompute each user's unread notification counter

With ``--audit-only`` every counter is checked and reported, nothing is written.
"""
from __future__ import annotations

import argparse

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_engine.core.errors import InvariantViolation
from forum_engine.db.session import SessionLocal
from forum_engine.models import Post, User
from forum_engine.services.activity import audit_post_activity, recount_post_activity
from forum_engine.services.notifications import audit_unread, recount_unread
from forum_engine.services.votes import audit_votes, recount_votes


def repair_posts(db: Session, *, audit_only: bool = False) -> int:
    """Audit (and unless ``audit_only``, rebuild) post counters.

    Returns:
        How many post counters (vote tallies, comment totals) had drifted.
    """
    drifted = 0
    for post_id in db.scalars(select(Post.id).order_by(Post.id)).all():
        try:
            audit_votes(db, post_id)
        except InvariantViolation as exc:
            drifted += 1
            print(f"[repair] {exc}")
            if not audit_only:
                recount_votes(db, post_id)
        try:
            audit_post_activity(db, post_id)
        except InvariantViolation as exc:
            drifted += 1
            print(f"[repair] {exc}")
        if not audit_only:
            # Also raises a lagging last_activity, which the audit does not cover.
            recount_post_activity(db, post_id)
    return drifted


def repair_unread(db: Session, *, audit_only: bool = False) -> int:
    """Audit (and unless ``audit_only``, rebuild) every user's unread counter.

    Returns:
        How many users had a drifted counter.
    """
    drifted = 0
    for user_id in db.scalars(select(User.id).order_by(User.id)).all():
        try:
            audit_unread(db, user_id)
        except InvariantViolation as exc:
            drifted += 1
            print(f"[repair] {exc}")
            if not audit_only:
                recount_unread(db, user_id)
    return drifted


def main() -> None:
    parser = argparse.ArgumentParser(description="Audit and rebuild cached forum counters")
    parser.add_argument(
        "--audit-only",
        action="store_true",
        help="Report drifted counters without rewriting anything.",
    )
    args = parser.parse_args()

    db = SessionLocal()
    try:
        drifted = repair_posts(db, audit_only=args.audit_only)
        drifted += repair_unread(db, audit_only=args.audit_only)
    finally:
        db.close()
    print(f"[repair] {drifted} drifted counter(s)")


if __name__ == "__main__":
    main()
