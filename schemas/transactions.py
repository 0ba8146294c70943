"""Pydantic schemas for transaction requests, results and diagnostics."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from schemas.common import CamelModel, WalletRequest
from schemas.event_log import EventLogEntry, utc_timestamp


class TransactionStatus(str, Enum):
    """Outcome of a façade operation."""

    SUCCESS = "success"
    PENDING = "pending"
    PENDING_IMPLEMENTATION = "pending-implementation"
    ERROR = "error"


class CreatePredictionTxRequest(WalletRequest):
    """Input for building a prediction-creation transaction."""

    datum: Dict[str, Any] = Field(
        default_factory=dict, description="Datum to attach to the prediction output"
    )
    script_ref: Optional[str] = Field(None, description="Reference script UTxO")


class VoteTxRequest(WalletRequest):
    """Input for building a vote transaction."""

    prediction_id: str = Field(..., min_length=1)
    support: bool = Field(..., description="True to vote for, False against")


class FinaliseTxRequest(WalletRequest):
    """Input for building a finalise transaction."""

    prediction_id: str = Field(..., min_length=1)


class TransactionResult(BaseModel):
    """Result returned by every façade operation.

    ``status`` tells callers apart a missing feature
    (``pending-implementation``) from an unavailable dependency (``pending``)
    and from a failure (``error``).
    """

    status: TransactionStatus
    message: str
    network: str
    reason: Optional[str] = None
    error: Optional[str] = None
    note: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status in (
            TransactionStatus.PENDING,
            TransactionStatus.PENDING_IMPLEMENTATION,
        )

    @classmethod
    def pending(cls, reason: str, message: str, network: str, **extra: Any):
        return cls(
            status=TransactionStatus.PENDING,
            reason=reason,
            message=message,
            network=network,
            **extra,
        )

    @classmethod
    def not_implemented(cls, operation: str, network: str):
        return cls(
            status=TransactionStatus.PENDING_IMPLEMENTATION,
            reason=f"{operation} builder not implemented",
            message=f"{operation.capitalize()} transaction builder not implemented yet",
            network=network,
        )

    @classmethod
    def failure(cls, message: str, error: str, network: str):
        return cls(
            status=TransactionStatus.ERROR,
            message=message,
            error=error or message,
            network=network,
        )


class ProviderHealth(CamelModel):
    """Snapshot of the chain data provider. Failed probes are ``None``."""

    network: str
    network_magic: int
    health: Optional[Dict[str, Any]] = None
    latest_block: Optional[Dict[str, Any]] = None
    latest_epoch: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    timestamp: str = Field(default_factory=utc_timestamp)


class NetworkDiagnostics(CamelModel):
    """Provider health combined with the recent event log."""

    diagnostics: ProviderHealth
    client_state: str = Field(..., description="Transaction builder client state")
    recent_events: List[EventLogEntry] = Field(default_factory=list)
