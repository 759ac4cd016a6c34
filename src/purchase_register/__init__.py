"""Purchase Register: SUNAT invoice reconciliation and detail extraction core."""

__version__ = "1.0.0"
