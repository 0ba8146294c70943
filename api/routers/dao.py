"""API routes for DAO transactions and network diagnostics."""

import logging
from typing import Annotated, List

from fastapi import APIRouter, Body, Depends, Query
from pydantic import computed_field

from api.dependencies import get_prediction_store, get_transaction_service
from schemas.common import CamelModel
from schemas.event_log import EventLogEntry
from schemas.predictions import Prediction, PredictionCreate
from schemas.transactions import (
    CreatePredictionTxRequest,
    FinaliseTxRequest,
    NetworkDiagnostics,
    TransactionResult,
    TransactionStatus,
    VoteTxRequest,
)
from services.transaction_service import CardanoTransactionService
from storage.predictions import PredictionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dao", tags=["DAO"])

Store = Annotated[PredictionStore, Depends(get_prediction_store)]
TransactionService = Annotated[
    CardanoTransactionService, Depends(get_transaction_service)
]


class PredictionActionResponse(CamelModel):
    """A stored prediction together with the matching transaction result.

    The prediction is stored either way; ``success`` is false when the
    transaction side failed.
    """

    prediction: Prediction
    transaction: TransactionResult

    @computed_field
    @property
    def success(self) -> bool:
        return self.transaction.status is not TransactionStatus.ERROR


@router.get("/diagnostics", response_model=NetworkDiagnostics)
async def network_diagnostics(
    service: TransactionService,
    limit: int = Query(25, ge=0, le=100),
) -> NetworkDiagnostics:
    """Provider health plus the recent transaction service events."""
    return await service.get_network_diagnostics(limit=limit)


@router.get("/history", response_model=List[EventLogEntry])
async def event_history(
    service: TransactionService,
    limit: int = Query(25, ge=0, le=100),
) -> List[EventLogEntry]:
    return service.get_history(limit)


@router.post(
    "/transactions/create",
    response_model=TransactionResult,
    response_model_exclude_none=True,
)
async def create_prediction_transaction(
    request: Annotated[CreatePredictionTxRequest, Body()],
    service: TransactionService,
) -> TransactionResult:
    return await service.create_prediction_transaction(request)


@router.post(
    "/transactions/vote",
    response_model=TransactionResult,
    response_model_exclude_none=True,
)
async def vote_transaction(
    request: Annotated[VoteTxRequest, Body()],
    service: TransactionService,
) -> TransactionResult:
    return await service.vote_transaction(request)


@router.post(
    "/transactions/finalise",
    response_model=TransactionResult,
    response_model_exclude_none=True,
)
async def finalise_transaction(
    request: Annotated[FinaliseTxRequest, Body()],
    service: TransactionService,
) -> TransactionResult:
    return await service.finalise_transaction(request)


@router.post(
    "/predictions/create",
    response_model=PredictionActionResponse,
    response_model_exclude_none=True,
    status_code=201,
)
async def create_prediction(
    request: Annotated[PredictionCreate, Body()],
    service: TransactionService,
    store: Store,
) -> PredictionActionResponse:
    """Store a new prediction and prepare its on-chain counterpart.

    The database record is the source of truth; the transaction result only
    reports how far the on-chain side got.
    """
    prediction = await store.create(Prediction.from_create(request))
    logger.info(f"Stored prediction {prediction.id} for {request.wallet_address}")

    transaction = await service.create_prediction_transaction(
        CreatePredictionTxRequest(
            wallet_address=request.wallet_address,
            datum={**request.datum, "predictionId": prediction.id},
            script_ref=request.script_ref,
        )
    )
    return PredictionActionResponse(prediction=prediction, transaction=transaction)
