"""Document data model."""

from chapbook.document.models import Document, Stub

__all__ = ["Document", "Stub"]
