"""Remote gateway implementations."""

from purchase_register.infrastructure.gateway.http_gateway import HttpRemoteGateway

__all__ = ["HttpRemoteGateway"]
