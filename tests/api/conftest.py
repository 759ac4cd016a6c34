"""API test fixtures: an app around a session with a fake gateway."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from purchase_register.api.main import create_app
from purchase_register.application.services import create_session
from purchase_register.application.session import InvoiceSession
from purchase_register.config.settings import AutoRegisterSettings, DetailJobSettings, Settings


@pytest.fixture
def api_session(mock_gateway, credentials_store) -> InvoiceSession:
    settings = Settings(
        detail_job=DetailJobSettings(poll_interval=0, max_poll_attempts=3, batch_pause=0),
        auto_register=AutoRegisterSettings(enabled=False),
    )
    return create_session(settings, gateway=mock_gateway, credentials=credentials_store)


@pytest.fixture
def client(api_session) -> Generator[TestClient, None, None]:
    with TestClient(create_app(session=api_session)) as test_client:
        yield test_client
