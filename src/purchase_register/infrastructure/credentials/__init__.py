"""Credentials storage implementations."""

from purchase_register.infrastructure.credentials.memory import InMemoryCredentialsStore

__all__ = ["InMemoryCredentialsStore"]
