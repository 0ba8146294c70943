"""FastAPI dependencies resolving the services built at startup."""

from fastapi import Depends, HTTPException, Request

from core.initialization import Services
from services.transaction_service import CardanoTransactionService
from storage.predictions import PredictionStore


def get_services(request: Request) -> Services:
    """Return the services stored on the application by the lifespan handler."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services are not initialised")
    return services


def get_transaction_service(
    services: Services = Depends(get_services),
) -> CardanoTransactionService:
    return services.transactions


def get_prediction_store(services: Services = Depends(get_services)) -> PredictionStore:
    return services.predictions
