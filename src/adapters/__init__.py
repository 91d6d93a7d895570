"""
Adapters package
----------------

The report reads its spreadsheets and writes its table and plots through
`StorageAdapter`; `LocalStorageAdapter` backs it with a directory.
"""

from .storage import LocalStorageAdapter, StorageAdapter  # noqa: F401

__all__ = ["StorageAdapter", "LocalStorageAdapter"]
