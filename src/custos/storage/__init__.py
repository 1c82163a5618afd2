"""Storage of encrypted export bundles."""

from custos.storage.exports import ExportStorage

__all__ = ["ExportStorage"]
