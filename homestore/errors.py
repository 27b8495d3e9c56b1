from __future__ import annotations


class HomeStoreError(Exception):
    """Base class for every error the inventory layer raises."""


class ValidationError(HomeStoreError):
    """Input rejected before reaching the store."""


class PreconditionError(HomeStoreError):
    """A child was added while no parent is selected."""


class StorageError(HomeStoreError):
    """The durable store is unavailable or rejected a write."""
