"""Tests for session endpoints."""

from purchase_register.core.entities import CollectionKind


def _credentials(**overrides):
    data = {"ruc": "20100000009", "username": "NEWUSER", "password": "pw"}
    data.update(overrides)
    return data


def test_save_credentials(client, api_session, mock_gateway):
    mock_gateway.validate_credentials.return_value = True

    response = client.put("/api/session/credentials", json=_credentials())

    assert response.status_code == 200
    assert api_session.credentials.get().username == "NEWUSER"


def test_invalid_credentials(client, api_session, mock_gateway):
    mock_gateway.validate_credentials.return_value = False

    response = client.put("/api/session/credentials", json=_credentials())

    assert response.status_code == 401
    assert response.json()["error"] == "INVALID_CREDENTIALS"
    assert api_session.credentials.get().username == "USER01"


def test_skip_remote_validation(client, mock_gateway):
    response = client.put(
        "/api/session/credentials", json=_credentials(validate_remote=False)
    )
    assert response.status_code == 200
    mock_gateway.validate_credentials.assert_not_awaited()


def test_logout(client, api_session, make_invoice):
    api_session.store.replace(CollectionKind.PURCHASE, [make_invoice(1)])

    response = client.post("/api/session/logout")

    assert response.status_code == 200
    assert api_session.purchases == []
    assert not api_session.credentials.get().is_complete
