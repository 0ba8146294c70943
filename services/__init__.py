"""Expose the transaction service for easy import."""

from .transaction_service import CardanoTransactionService

__all__ = ["CardanoTransactionService"]
