"""Pydantic schemas for prediction records."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import Field

from schemas.common import CamelModel, WalletRequest


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PredictionStatus(str, Enum):
    OPEN = "open"
    FINALISED = "finalised"


class PredictionCreate(WalletRequest):
    """Payload for creating a prediction. ``walletAddress`` is the creator."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    category: Optional[str] = Field(None, max_length=100)
    target_date: Optional[datetime] = Field(
        None, description="When the prediction should be resolved"
    )
    datum: Dict[str, Any] = Field(default_factory=dict)
    script_ref: Optional[str] = None


class PredictionUpdate(CamelModel):
    """Partial update of the editable prediction fields."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    category: Optional[str] = Field(None, max_length=100)
    target_date: Optional[datetime] = None


class PredictionVote(WalletRequest):
    support: bool


class PredictionFinalise(WalletRequest):
    outcome: Optional[bool] = Field(
        None, description="Resolved outcome; majority of votes when omitted"
    )


class Prediction(CamelModel):
    """Stored prediction record."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    title: str
    description: str = ""
    category: Optional[str] = None
    creator_address: str
    target_date: Optional[datetime] = None
    datum: Dict[str, Any] = Field(default_factory=dict)
    status: PredictionStatus = PredictionStatus.OPEN
    votes_for: int = 0
    votes_against: int = 0
    voters: List[str] = Field(default_factory=list)
    outcome: Optional[bool] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @classmethod
    def from_create(cls, data: PredictionCreate) -> "Prediction":
        return cls(
            title=data.title,
            description=data.description,
            category=data.category,
            creator_address=data.wallet_address,
            target_date=data.target_date,
            datum=data.datum,
        )

    def majority_outcome(self) -> Optional[bool]:
        """True/False for a clear majority, None on a tie."""
        if self.votes_for == self.votes_against:
            return None
        return self.votes_for > self.votes_against
