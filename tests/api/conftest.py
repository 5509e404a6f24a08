"""
Pytest configuration for API integration tests
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def client():
    """
    Create a test client with properly initialized app state.
    Each test gets a fresh client to avoid state contamination.
    """
    from api.dependencies import Services
    from main import app
    from services.convert_service import ConvertService

    # Initialize services (text renderer only for deterministic conversion)
    services = Services.create()
    services.convert = ConvertService(enable_libreoffice=False)

    # Set in app state
    app.state.services = services
    app.state.config = {}
    app.state.debug = False
    app.state.rate_limiter = None

    # Create test client (no context manager to avoid running the lifespan)
    test_client = TestClient(app, raise_server_exceptions=False)

    yield test_client
