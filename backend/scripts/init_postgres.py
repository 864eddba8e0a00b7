"""
Check the PostgreSQL database for VideoTube and optionally create its tables.

  python scripts/init_postgres.py                 # connectivity check
  python scripts/init_postgres.py --create-tables # bootstrap without Alembic

Create the role and database first:

  sudo -u postgres psql
  CREATE USER videotube WITH PASSWORD 'videotube';
  CREATE DATABASE videotube_db OWNER videotube;
  \q
"""

import argparse
import sys

from sqlalchemy import text

from videotube.config import settings
from videotube.core.database import Base, engine


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--create-tables", action="store_true", help="run create_all after the check")
    args = parser.parse_args()

    url = settings.get_database_url()
    if not url.startswith("postgresql"):
        print("DATABASE_URL is not PostgreSQL. Skipping.")
        return
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("PostgreSQL connection OK. Database exists.")
    except Exception as e:
        print(f"Cannot connect to PostgreSQL: {e}")
        print("\nCreate database first:")
        print("  psql -U postgres -c \"CREATE USER videotube WITH PASSWORD 'videotube';\"")
        print("  psql -U postgres -c \"CREATE DATABASE videotube_db OWNER videotube;\"")
        sys.exit(1)

    if args.create_tables:
        Base.metadata.create_all(bind=engine)
        print("Tables created: " + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    main()
