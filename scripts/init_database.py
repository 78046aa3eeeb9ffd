"""Initialize Database - Create all tables

Quick setup for a fresh database. Deployments that track schema changes
should run `alembic upgrade head` instead.
"""
import sys

from sqlalchemy import inspect

from oews_collector.config import settings
from oews_collector.database.connection import DatabaseConnection, init_database
from oews_collector.exceptions import OEWSError
from oews_collector.logging_config import setup_logging


def main():
    try:
        setup_logging(settings.app.log_level, settings.app.log_file_path)
        print("Initializing database...")

        engine = DatabaseConnection.get_engine()
        print("Connecting to:", engine.url.render_as_string(hide_password=True))

        init_database(engine)
        print("✓ All tables created successfully!")

        tables = inspect(engine).get_table_names()
        print(f"\nCreated {len(tables)} tables:")
        for table in sorted(tables):
            print(f"  - {table}")
    except OEWSError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        DatabaseConnection.dispose()


if __name__ == "__main__":
    main()
