"""
Unit test fixtures. In-memory DB only; no HTTP app, no network.
"""
import pytest
from unittest.mock import MagicMock


@pytest.fixture
def http_session():
    """Stand-in for requests.Session used by the HTTP permission provider."""
    return MagicMock()
