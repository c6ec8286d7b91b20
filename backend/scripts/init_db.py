"""Create the feedback tables, optionally dropping them first or seeding afterwards.

Usage:
  python scripts/init_db.py [--reset] [--seed]
"""
import argparse
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from survey_insights.config import settings
from survey_insights.database import Base, engine, init_db


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the survey database schema.")
    parser.add_argument("--reset", action="store_true", help="Drop every table before creating it again")
    parser.add_argument("--seed", action="store_true", help="Load the surveys, questions and demo users")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    print(f"Database: {settings.DATABASE_URL}")
    if args.reset:
        import survey_insights.models  # noqa: F401
        print("Dropping existing survey tables...")
        Base.metadata.drop_all(bind=engine)
    init_db()
    print("Survey tables are ready.")
    if args.seed:
        from seed_data import seed
        seed()


if __name__ == "__main__":
    main()
