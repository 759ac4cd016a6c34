"""In-memory credentials store, optionally seeded from settings."""

from purchase_register.config import get_logger
from purchase_register.config.settings import CredentialSettings
from purchase_register.core.entities.credentials import Credentials
from purchase_register.core.interfaces.storage import ICredentialsStore

logger = get_logger(__name__)


class InMemoryCredentialsStore(ICredentialsStore):
    """Keeps the SUNAT credentials for the lifetime of the session."""

    def __init__(self, initial: Credentials | None = None):
        self._credentials = initial or Credentials()

    @classmethod
    def from_settings(cls, settings: CredentialSettings) -> "InMemoryCredentialsStore":
        return cls(
            Credentials(
                ruc=settings.ruc,
                username=settings.username,
                password=settings.password,
                client_id=settings.client_id,
                client_secret=settings.client_secret,
            )
        )

    def get(self) -> Credentials:
        return self._credentials

    def save(self, credentials: Credentials) -> None:
        self._credentials = credentials
        logger.info("credentials_saved", ruc=credentials.ruc)

    def clear(self) -> None:
        self._credentials = Credentials()
        logger.info("credentials_cleared")
