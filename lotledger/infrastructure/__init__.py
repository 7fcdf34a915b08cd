"""Infrastructure layer implementations."""

from lotledger.infrastructure import storage

__all__ = ["storage"]
