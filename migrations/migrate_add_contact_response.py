#!/usr/bin/env python3
"""Migration script to add response tracking columns to contact_submissions."""

import os
import sys
from sqlalchemy import create_engine, text, inspect

# Load environment variables
from dotenv import load_dotenv
load_dotenv()

DATABASE_URL = os.environ.get("DATABASE_URL")

if not DATABASE_URL:
    print("ERROR: DATABASE_URL environment variable is required.")
    sys.exit(1)

# Heroku uses postgres:// but SQLAlchemy 2.0+ requires postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

engine = create_engine(DATABASE_URL)

COLUMNS = [
    ("response", "TEXT"),
    ("responded_at", "TIMESTAMP"),
]


def column_exists(connection, table_name, column_name):
    """Check if a column exists in a table."""
    inspector = inspect(connection)
    columns = inspector.get_columns(table_name)
    return any(c['name'] == column_name for c in columns)


def table_exists(connection, table_name):
    return inspect(connection).has_table(table_name)


def run_migration():
    print("Running migration to add response columns to contact_submissions table...")
    print(f"Database: {engine.url.host}:{engine.url.port}/{engine.url.database}")

    with engine.connect() as connection:
        if not table_exists(connection, 'contact_submissions'):
            print("✓ Table 'contact_submissions' does not exist yet; it will be created on startup.")
            return

        for column_name, column_type in COLUMNS:
            if not column_exists(connection, 'contact_submissions', column_name):
                print(f"Adding {column_name} column to contact_submissions table...")
                connection.execute(text(f"ALTER TABLE contact_submissions ADD COLUMN {column_name} {column_type}"))
                connection.commit()
                print(f"✓ Successfully added {column_name} column.")
            else:
                print(f"✓ Column '{column_name}' already exists in 'contact_submissions' table.")

    print("\n✓ Migration completed successfully!")


if __name__ == "__main__":
    run_migration()
