"""
Create Database Tables Using SQLAlchemy

Creates the complaint tables directly with create_all(). This bypasses
Alembic migrations and is meant for local development and demos.
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

import sqlalchemy as sa

from src.civicstack.db.base import Base, import_all_models
from src.civicstack.db.session import get_engine
from src.civicstack.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main():
    """Create all database tables, optionally dropping existing ones first."""
    parser = argparse.ArgumentParser(description="Create CivicStack database tables")
    parser.add_argument("--drop", action="store_true", help="Drop existing complaint tables first")
    args = parser.parse_args()

    setup_logging()
    engine = get_engine()

    # Import all models to register them with Base
    import_all_models()

    if args.drop:
        logger.warning("dropping_existing_tables", tables=sorted(Base.metadata.tables))
        Base.metadata.drop_all(bind=engine)

    logger.info("creating_database_tables")
    Base.metadata.create_all(bind=engine, checkfirst=True)

    tables = sorted(sa.inspect(engine).get_table_names())
    logger.info("database_tables_created", count=len(tables), tables=tables)


if __name__ == "__main__":
    main()
