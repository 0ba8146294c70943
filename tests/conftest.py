"""Global fixtures for pytest."""

from typing import Any, Dict

import pytest

from core.config import CardanoConfig
from providers.blockfrost import ChainDataProvider

WALLET = "addr_test1qz2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzer3jcu5d8ps7zex2k2xt3uqxgjqnnj83ws8lhrn648jjxtwq2ytjqp"
OTHER_WALLET = "addr_test1vpu5vlrf4xkxv2qpwngf6cjhtw542ayty80v8dyr49rf5eg57c2qv"


class FakeChainProvider(ChainDataProvider):
    """In-process chain data provider with scriptable responses.

    Any response that is an exception instance is raised instead of returned.
    """

    def __init__(self, config: CardanoConfig, **responses: Any):
        super().__init__(config)
        self.responses: Dict[str, Any] = {
            "health": {"is_healthy": True},
            "latest_block": {"height": 2048, "hash": "ab" * 32},
            "latest_epoch": {"epoch": 512},
            "epoch_parameters": {"epoch": 512, "min_fee_a": 44, "min_fee_b": 155381},
        }
        self.responses.update(responses)
        self.calls: Dict[str, int] = {}
        self.closed = False

    async def _respond(self, name: str) -> Any:
        self.calls[name] = self.calls.get(name, 0) + 1
        value = self.responses[name]
        if isinstance(value, BaseException):
            raise value
        return value

    async def get_health(self):
        return await self._respond("health")

    async def get_latest_block(self):
        return await self._respond("latest_block")

    async def get_latest_epoch(self):
        return await self._respond("latest_epoch")

    async def get_epoch_parameters(self, epoch="latest"):
        return await self._respond("epoch_parameters")

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def wallet() -> str:
    return WALLET


@pytest.fixture
def other_wallet() -> str:
    return OTHER_WALLET


@pytest.fixture
def preview_config() -> CardanoConfig:
    """Preview network config with short timeouts for tests."""
    return CardanoConfig.for_network(
        "preview",
        blockfrost_project_id="abc123",
        log_level="silent",
        client_init_timeout=0.5,
        client_fallback_timeout=0.2,
    )


@pytest.fixture
def fake_provider(preview_config) -> FakeChainProvider:
    return FakeChainProvider(preview_config)


@pytest.fixture
def provider_factory():
    """Build a FakeChainProvider with custom responses."""
    return FakeChainProvider
