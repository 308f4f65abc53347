"""Contracts of the remote template backend consumed by the session core."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

DocumentId = Union[int, str]


class DocumentApi(ABC):
    """Fetch/create/update of template documents"""

    @abstractmethod
    async def fetch(self, document_id: DocumentId) -> Dict[str, Any]:
        """
        Fetch one template record

        Raises:
            RemoteApiError: If the request fails
        """
        pass

    @abstractmethod
    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a template and return the stored record (with ``id``)."""
        pass

    @abstractmethod
    async def update(self, document_id: DocumentId, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Update a template and return the stored record."""
        pass


class CustomerDirectory(ABC):
    """Resolves customer display names"""

    @abstractmethod
    async def get_customer_name(self, customer_id: DocumentId) -> Optional[str]:
        """Return the customer's display name, or None if unknown."""
        pass
