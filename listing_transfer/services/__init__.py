"""Data-access services."""

from .store import TransferStore

__all__ = ["TransferStore"]
