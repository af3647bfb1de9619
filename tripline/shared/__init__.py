"""Shared cross-layer types and exceptions."""

from tripline.shared.exceptions import StalePreviewError, StorageError, TransactionFailure

__all__ = ["StorageError", "TransactionFailure", "StalePreviewError"]
