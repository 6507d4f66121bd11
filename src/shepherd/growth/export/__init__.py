"""Import and export of growth data in document-store shape."""

from .documents import (
    DocumentExporter,
    DocumentExportResult,
    DocumentImporter,
    DocumentImportResult,
)

__all__ = [
    "DocumentExporter",
    "DocumentExportResult",
    "DocumentImporter",
    "DocumentImportResult",
]
