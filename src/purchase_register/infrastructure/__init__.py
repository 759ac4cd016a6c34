"""Infrastructure layer - gateway, storage and credentials adapters."""
