"""
Pytest configuration for Smart Advisor backend tests.

Sets up test environment and global fixtures.
"""
import os
import pytest
from unittest.mock import MagicMock

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_PUBLISHABLE_KEY", "test-publishable-key")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-api-key")
os.environ.setdefault("TMDB_API_KEY", "test-tmdb-key")
os.environ.setdefault("GOOGLE_BOOKS_API_KEY", "test-google-books-key")


@pytest.fixture
def supabase_client():
    """
    Mock Supabase client for testing storage calls.

    Every query-builder method returns the same query mock, so a chain like
    table().select().eq().order().range().execute() resolves to
    client.query.execute.
    """
    mock_client = MagicMock()
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "gte", "lte", "order", "range"):
        getattr(query, method).return_value = query
    mock_client.table.return_value = query
    mock_client.query = query
    return mock_client
