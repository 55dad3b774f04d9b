"""
Environment-driven settings for the persistence and content collaborators.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


DEFAULT_SQLITE_URL = "sqlite:///aves_progress.db"
DEFAULT_DB_NAME = "aves"
DEFAULT_ANNOTATION_COLLECTION = "annotations"


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url() -> str:
    """
    Get the SQLAlchemy database URL for learner progress.

    Falls back to a local SQLite file when DATABASE_URL is unset.
    In test mode the database name 'aves_progress' is swapped for
    'test_aves_progress' so test runs never touch real learner data.

    Returns:
        Database URL
    """
    url = os.getenv("DATABASE_URL", DEFAULT_SQLITE_URL)
    if is_test_mode():
        return url.replace("aves_progress", "test_aves_progress")
    return url


def get_mongo_uri() -> str:
    """
    Get the MongoDB connection string for the annotation CMS.

    Raises:
        ValueError: If MONGO_URI is not set
    """
    mongo_uri = os.getenv("MONGO_URI")
    if not mongo_uri:
        raise ValueError("MONGO_URI not found in environment variables")
    return mongo_uri


def get_db_name() -> str:
    return os.getenv("AVES_DB_NAME", DEFAULT_DB_NAME)


def get_annotation_collection_name() -> str:
    return os.getenv("AVES_ANNOTATION_COLLECTION", DEFAULT_ANNOTATION_COLLECTION)


def get_default_user_id() -> str:
    """Get default user id for scoping review data."""
    return os.getenv("DEFAULT_USER_ID", "learner")
