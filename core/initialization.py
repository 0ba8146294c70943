"""Construction of the long-lived backend services."""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

from core.config import AppSettings, CardanoConfig
from core.exceptions import ConfigurationError
from providers.blockfrost import BlockfrostProvider, ChainDataProvider
from services.transaction_service import CardanoTransactionService
from storage.predictions import PredictionStore, connect_prediction_store

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler or CLI command needs, built once."""

    config: CardanoConfig
    settings: AppSettings
    transactions: CardanoTransactionService
    predictions: PredictionStore

    async def aclose(self) -> None:
        await self.transactions.aclose()
        await self.predictions.aclose()


def build_provider(
    config: CardanoConfig,
) -> Tuple[Optional[ChainDataProvider], Optional[str]]:
    """Build the chain data provider.

    A missing credential is fatal to the provider only: the error message is
    returned so diagnostics can report it.
    """
    try:
        return BlockfrostProvider(config), None
    except ConfigurationError as e:
        logger.error(f"Chain data provider unavailable: {e}")
        return None, str(e)


async def initialize_system(
    config: Optional[CardanoConfig] = None,
    settings: Optional[AppSettings] = None,
) -> Services:
    """Load configuration and build the services.

    Raises:
        ConfigurationError: If the environment holds invalid values.
    """
    logger.info("Running system initialization...")
    config = config or CardanoConfig.from_env()
    settings = settings or AppSettings.from_env()

    provider, provider_error = build_provider(config)
    transactions = CardanoTransactionService(
        config, provider, provider_error=provider_error
    )
    predictions = await connect_prediction_store(settings)

    logger.info(
        f"System initialization complete. Network: {config.network}, "
        f"storage: {predictions.backend}"
    )
    return Services(
        config=config,
        settings=settings,
        transactions=transactions,
        predictions=predictions,
    )
