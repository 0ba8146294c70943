"""API routes for managing prediction records."""

import logging
from typing import Annotated, Dict, List, Optional

from fastapi import APIRouter, Body, Query

from api.routers.dao import PredictionActionResponse, Store, TransactionService
from schemas.predictions import (
    Prediction,
    PredictionFinalise,
    PredictionStatus,
    PredictionUpdate,
    PredictionVote,
)
from schemas.transactions import FinaliseTxRequest, VoteTxRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/predictions", tags=["Predictions"])


@router.get("", response_model=List[Prediction])
async def list_predictions(
    store: Store,
    status: Optional[PredictionStatus] = None,
    creator: Optional[str] = Query(None, description="Creator wallet address"),
    limit: int = Query(100, ge=1, le=500),
) -> List[Prediction]:
    return await store.list(status=status, creator_address=creator, limit=limit)


@router.get("/{prediction_id}", response_model=Prediction)
async def get_prediction(prediction_id: str, store: Store) -> Prediction:
    return await store.get(prediction_id)


@router.put("/{prediction_id}", response_model=Prediction)
async def update_prediction(
    prediction_id: str,
    changes: Annotated[PredictionUpdate, Body()],
    store: Store,
) -> Prediction:
    return await store.update(prediction_id, changes)


@router.delete("/{prediction_id}")
async def delete_prediction(prediction_id: str, store: Store) -> Dict[str, object]:
    await store.delete(prediction_id)
    logger.info(f"Deleted prediction {prediction_id}")
    return {"success": True, "message": "Prediction deleted"}


@router.post(
    "/{prediction_id}/vote",
    response_model=PredictionActionResponse,
    response_model_exclude_none=True,
)
async def vote_on_prediction(
    prediction_id: str,
    vote: Annotated[PredictionVote, Body()],
    store: Store,
    service: TransactionService,
) -> PredictionActionResponse:
    """Count a wallet's vote and prepare the matching vote transaction."""
    prediction = await store.add_vote(prediction_id, vote.wallet_address, vote.support)
    transaction = await service.vote_transaction(
        VoteTxRequest(
            wallet_address=vote.wallet_address,
            prediction_id=prediction_id,
            support=vote.support,
        )
    )
    return PredictionActionResponse(prediction=prediction, transaction=transaction)


@router.post(
    "/{prediction_id}/finalise",
    response_model=PredictionActionResponse,
    response_model_exclude_none=True,
)
async def finalise_prediction(
    prediction_id: str,
    request: Annotated[PredictionFinalise, Body()],
    store: Store,
    service: TransactionService,
) -> PredictionActionResponse:
    prediction = await store.finalise(prediction_id, request.outcome)
    transaction = await service.finalise_transaction(
        FinaliseTxRequest(
            wallet_address=request.wallet_address, prediction_id=prediction_id
        )
    )
    return PredictionActionResponse(prediction=prediction, transaction=transaction)
