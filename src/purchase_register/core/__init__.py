"""Core domain layer - entities, interfaces, services and exceptions."""

from purchase_register.core import entities, exceptions, interfaces

__all__ = ["entities", "interfaces", "exceptions"]
