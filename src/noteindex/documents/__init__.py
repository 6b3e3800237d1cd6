"""Document store protocol and the folder-backed adapter."""

from noteindex.documents.base import Document, DocumentInfo, DocumentStore
from noteindex.documents.folder import FolderDocumentStore

__all__ = ["Document", "DocumentInfo", "DocumentStore", "FolderDocumentStore"]
