#!/usr/bin/env python3
"""Clear practice history from the database (keeps saved plans)."""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app import create_app, db
from app.models import CompletedSession, PracticePlan, PracticeStep


def clear_sessions(include_plans: bool = False):
    """Clear completed sessions.

    Args:
        include_plans: If True, also delete saved practice plans
    """
    app = create_app()

    with app.app_context():
        print("Clearing practice history...")

        count = CompletedSession.query.delete()
        print(f"  Deleted {count} completed sessions")

        if include_plans:
            count = PracticeStep.query.delete()
            print(f"  Deleted {count} plan steps")
            count = PracticePlan.query.delete()
            print(f"  Deleted {count} practice plans")

        db.session.commit()
        print("\nDone! History cleared.")
        if not include_plans:
            print("Note: Practice plans are preserved.")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Clear practice history from database")
    parser.add_argument(
        "--include-plans",
        action="store_true",
        help="Also delete practice plans"
    )
    parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Skip confirmation prompt"
    )

    args = parser.parse_args()

    if not args.yes:
        response = input("This will delete ALL practice history. Continue? [y/N] ")
        if response.lower() != 'y':
            print("Aborted.")
            sys.exit(0)

    clear_sessions(include_plans=args.include_plans)
