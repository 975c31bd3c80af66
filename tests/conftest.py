from __future__ import annotations

from unittest.mock import Mock

import httpx
import pytest


@pytest.fixture
def mock_response() -> httpx.Response:
    """Create a mock httpx.Response for testing."""
    return Mock(spec=httpx.Response, status_code=200)


@pytest.fixture
def mock_callback() -> Mock:
    """Create a mock terminal callback for testing.

    Returns:
        A Mock object that can be used as a terminal callback.
    """
    return Mock()


@pytest.fixture
def mock_sink() -> Mock:
    """Create a mock diagnostic sink recording ``log`` calls."""
    return Mock()
