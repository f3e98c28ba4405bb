"""Base repository for documents that live under a user's path."""

import logging
from abc import ABC
from typing import Any, Callable, Optional, TypeVar

from ..store import DocumentStore, Unsubscribe
from ...exceptions import StoredDocumentError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UserScopedRepository(ABC):
    """
    Base class for repositories bound to a single user.

    Subclasses declare ``relative_path``; the full path of their document
    (or collection) is ``users/{user_id}/{relative_path}``.
    """

    relative_path: str = ""

    def __init__(self, store: DocumentStore, user_id: str) -> None:
        if not user_id:
            raise ValueError("user_id is required")
        self._store = store
        self._user_id = user_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def path(self) -> str:
        """Full path of the document or collection this repository owns."""
        return f"users/{self._user_id}/{self.relative_path}"

    def subscribe(self, callback: Callable[[Any], None]) -> Unsubscribe:
        """Watch raw changes of the owned path."""
        return self._store.subscribe(self.path, callback)

    def _parse(self, parse: Callable[..., T], *args: Any, path: Optional[str] = None) -> T:
        """
        Build a model from a stored document.

        Raises:
            StoredDocumentError: If the document does not fit the model
        """
        path = path or self.path
        try:
            return parse(*args)
        except (ValueError, TypeError, KeyError) as e:
            # pydantic's ValidationError is a ValueError
            logger.error(f"Unreadable document at {path}: {e}")
            raise StoredDocumentError(f"Stored document at {path} is invalid", path=path) from e
