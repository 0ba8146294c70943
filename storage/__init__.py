"""Expose prediction stores for easy import."""

from .predictions import (
    DuplicateVoteError,
    InMemoryPredictionStore,
    MongoPredictionStore,
    PredictionClosedError,
    PredictionNotFoundError,
    PredictionStore,
    PredictionStoreError,
    connect_prediction_store,
)

__all__ = [
    "DuplicateVoteError",
    "InMemoryPredictionStore",
    "MongoPredictionStore",
    "PredictionClosedError",
    "PredictionNotFoundError",
    "PredictionStore",
    "PredictionStoreError",
    "connect_prediction_store",
]
