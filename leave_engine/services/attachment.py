from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AttachmentStore(Protocol):
    """Resolves stored attachment references to downloadable URLs."""

    def resolve_url(self, reference: str) -> str | None: ...


class StaticAttachmentStore:
    """Joins references onto a fixed base URL."""

    def __init__(self, base_url: str = "/attachments") -> None:
        self.base_url = base_url.rstrip("/")

    def resolve_url(self, reference: str) -> str | None:
        if not reference:
            return None
        return f"{self.base_url}/{reference.lstrip('/')}"


_attachment_store: AttachmentStore = StaticAttachmentStore()


def get_attachment_store() -> AttachmentStore:
    return _attachment_store


def set_attachment_store(store: AttachmentStore) -> None:
    """Override the store (for testing or production wiring)."""
    global _attachment_store
    _attachment_store = store


def resolve_attachment_url(reference: str | None) -> str | None:
    if reference is None:
        return None
    return get_attachment_store().resolve_url(reference)
