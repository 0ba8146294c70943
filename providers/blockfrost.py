"""Chain data provider abstraction and its Blockfrost implementation."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from core.config import CardanoConfig
from core.exceptions import ConfigurationError
from schemas.transactions import ProviderHealth

logger = logging.getLogger(__name__)


class ChainDataProvider(ABC):
    """Abstract base class for Cardano chain data providers."""

    def __init__(self, config: CardanoConfig):
        self.config = config
        self.network = config.network
        self.network_magic = config.network_magic

    @abstractmethod
    async def get_health(self) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def get_latest_block(self) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def get_latest_epoch(self) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def get_epoch_parameters(self, epoch: int | str = "latest") -> Dict[str, Any]:
        raise NotImplementedError

    async def probe_health(self) -> ProviderHealth:
        """Run the health probes concurrently and report each one independently.

        A failing probe is logged and reported as ``None``; it never cancels
        or fails the other probes.
        """
        probes = {
            "health": self.get_health(),
            "latest_block": self.get_latest_block(),
            "latest_epoch": self.get_latest_epoch(),
        }
        outcomes = await asyncio.gather(*probes.values(), return_exceptions=True)

        results: Dict[str, Optional[Dict[str, Any]]] = {}
        for field, outcome in zip(probes, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(f"Provider probe '{field}' failed: {outcome!r}")
                results[field] = None
            else:
                results[field] = outcome

        return ProviderHealth(
            network=self.network, network_magic=self.network_magic, **results
        )

    async def aclose(self) -> None:
        """Release network resources held by the provider."""


class BlockfrostProvider(ChainDataProvider):
    """Chain data provider backed by the Blockfrost REST API."""

    def __init__(
        self, config: CardanoConfig, client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(config)
        if not config.blockfrost_project_id:
            raise ConfigurationError(
                "CARDANO_BLOCKFROST_PROJECT_ID is required to use the Blockfrost "
                "provider. Set it in your environment variables."
            )
        self.base_url = config.blockfrost_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            headers={"project_id": config.blockfrost_project_id},
            timeout=config.request_timeout,
        )
        logger.info(
            f"Initialized Blockfrost provider for {config.network} at {self.base_url}"
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug(f"Blockfrost {method} {path}")
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Blockfrost HTTP error for {path}: "
                f"{e.response.status_code} - {e.response.text[:200]}"
            )
            raise
        except httpx.RequestError as e:
            logger.error(f"Network error calling Blockfrost {path}: {e}")
            raise
        return response.json()

    async def get_health(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")

    async def get_latest_block(self) -> Dict[str, Any]:
        return await self._request("GET", "/blocks/latest")

    async def get_latest_epoch(self) -> Dict[str, Any]:
        return await self._request("GET", "/epochs/latest")

    async def get_genesis_parameters(self) -> Dict[str, Any]:
        return await self._request("GET", "/genesis")

    async def get_epoch_parameters(self, epoch: int | str = "latest") -> Dict[str, Any]:
        if epoch == "latest":
            return await self._request("GET", "/epochs/latest/parameters")
        return await self._request("GET", f"/epochs/{epoch}/parameters")

    async def get_account_assets(self, address: str) -> Dict[str, Any]:
        if not address:
            raise ValueError("Address is required to query account assets")
        return await self._request("GET", f"/addresses/{address}")

    async def list_account_utxos(
        self,
        address: str,
        page: Optional[int] = None,
        count: Optional[int] = None,
        order: Optional[str] = None,
    ) -> list:
        """List UTxOs at ``address`` using Blockfrost pagination parameters."""
        if not address:
            raise ValueError("Address is required to list UTXOs")
        params = {
            k: v
            for k, v in {"page": page, "count": count, "order": order}.items()
            if v is not None
        }
        return await self._request("GET", f"/addresses/{address}/utxos", params=params)

    async def submit_transaction(self, cbor: bytes | str) -> str:
        """Submit a signed transaction and return its hash.

        Args:
            cbor: Serialized transaction, raw bytes or a hex string.
        """
        if not cbor:
            raise ValueError("Transaction CBOR is required")
        body = bytes.fromhex(cbor) if isinstance(cbor, str) else cbor
        return await self._request(
            "POST",
            "/tx/submit",
            content=body,
            headers={"Content-Type": "application/cbor"},
        )

    async def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        if not tx_hash:
            raise ValueError("Transaction hash is required")
        return await self._request("GET", f"/txs/{tx_hash}")

    async def get_transaction_utxos(self, tx_hash: str) -> Dict[str, Any]:
        if not tx_hash:
            raise ValueError("Transaction hash is required")
        return await self._request("GET", f"/txs/{tx_hash}/utxos")

    async def aclose(self) -> None:
        await self._client.aclose()
