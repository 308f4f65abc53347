"""Remote template backend: contracts, httpx client and loader."""
from formdraft.remote.base import CustomerDirectory, DocumentApi, DocumentId
from formdraft.remote.http_client import HttpDocumentApi, parse_error_response
from formdraft.remote.loader import LoadedDocument, RemoteLoader

__all__ = [
    "CustomerDirectory",
    "DocumentApi",
    "DocumentId",
    "HttpDocumentApi",
    "parse_error_response",
    "LoadedDocument",
    "RemoteLoader",
]
