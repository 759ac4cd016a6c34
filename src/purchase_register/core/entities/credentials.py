"""SUNAT credentials used for tax authority requests."""

from pydantic import BaseModel, ConfigDict, SecretStr


class Credentials(BaseModel):
    """Own RUC plus SOL (Clave SOL) login, and optional API client keys."""

    model_config = ConfigDict(frozen=True)

    ruc: str | None = None
    username: str | None = None
    password: SecretStr | None = None
    client_id: str | None = None
    client_secret: SecretStr | None = None

    def missing_fields(self) -> list[str]:
        """Names of the fields required for detail extraction that are empty."""
        missing = []
        if not self.ruc:
            missing.append("ruc")
        if not self.username:
            missing.append("username")
        if self.password is None or not self.password.get_secret_value():
            missing.append("password")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()
