"""Expose the request, result and record schemas."""

from .event_log import EventLogEntry
from .predictions import (
    Prediction,
    PredictionCreate,
    PredictionFinalise,
    PredictionStatus,
    PredictionUpdate,
    PredictionVote,
)
from .transactions import (
    CreatePredictionTxRequest,
    FinaliseTxRequest,
    NetworkDiagnostics,
    ProviderHealth,
    TransactionResult,
    TransactionStatus,
    VoteTxRequest,
)

__all__ = [
    "CreatePredictionTxRequest",
    "EventLogEntry",
    "FinaliseTxRequest",
    "NetworkDiagnostics",
    "Prediction",
    "PredictionCreate",
    "PredictionFinalise",
    "PredictionStatus",
    "PredictionUpdate",
    "PredictionVote",
    "ProviderHealth",
    "TransactionResult",
    "TransactionStatus",
    "VoteTxRequest",
]
