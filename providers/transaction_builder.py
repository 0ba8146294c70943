"""Transaction builder client handle.

Connecting is the expensive step: the client needs the current protocol
parameters from the chain data provider before it could balance or price a
transaction. Building itself is not available yet.
"""

import logging
from typing import Any, Dict

from core.config import NETWORK_PRESETS
from providers.blockfrost import ChainDataProvider

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_NAME = "Preview"


def resolve_network_name(network: str) -> str:
    """Map a configured network key to the builder's network name."""
    preset = NETWORK_PRESETS.get(network)
    return preset.display_name if preset else DEFAULT_NETWORK_NAME


class TransactionBuilderClient:
    """Connected transaction builder bound to one network."""

    def __init__(
        self,
        provider: ChainDataProvider,
        network_name: str,
        protocol_parameters: Dict[str, Any],
    ):
        self.provider = provider
        self.network_name = network_name
        self.protocol_parameters = protocol_parameters

    @classmethod
    async def connect(
        cls, provider: ChainDataProvider, network: str
    ) -> "TransactionBuilderClient":
        """Load protocol parameters and return a ready client.

        Raises whatever the provider raises when the parameters cannot be read.
        """
        network_name = resolve_network_name(network)
        logger.debug(f"Connecting transaction builder to {network_name}")
        parameters = await provider.get_epoch_parameters("latest")
        return cls(provider, network_name, parameters)

    def describe(self) -> Dict[str, Any]:
        return {
            "networkName": self.network_name,
            "epoch": self.protocol_parameters.get("epoch"),
        }
