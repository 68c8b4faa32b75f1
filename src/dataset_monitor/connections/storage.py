"""
Storage connection base class.
"""

from typing import Any


class BaseStorageConnection:
    """
    Base class for object storage connections.

    The monitor only needs a small capability set from storage: paginated
    listing, whole-object reads, metadata reads, server-side copies and batch
    deletes. Subclasses implement those against a concrete backend.
    """

    def __init__(self, name: str, config: dict[str, Any]):
        """
        Initialize storage connection.

        Args:
            name: Connection name
            config: Connection configuration dictionary
        """
        self.name = name
        self.config = config

    def __repr__(self) -> str:
        """String representation."""
        return f"{self.__class__.__name__}(name='{self.name}')"
