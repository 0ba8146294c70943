"""Tests for providers/blockfrost.py and providers/transaction_builder.py"""

import json

import httpx
import pytest

from core.config import CardanoConfig
from core.exceptions import ConfigurationError
from providers.blockfrost import BlockfrostProvider
from providers.transaction_builder import TransactionBuilderClient, resolve_network_name

BASE_URL = "https://cardano-preview.blockfrost.io/api/v0"


def make_provider(config, handler):
    """Provider whose HTTP calls are answered by ``handler``."""
    client = httpx.AsyncClient(
        base_url=BASE_URL,
        headers={"project_id": config.blockfrost_project_id},
        transport=httpx.MockTransport(handler),
    )
    return BlockfrostProvider(config, client=client)


def test_missing_project_id_raises():
    with pytest.raises(ConfigurationError) as exc_info:
        BlockfrostProvider(CardanoConfig.for_network("preview"))

    assert "CARDANO_BLOCKFROST_PROJECT_ID" in str(exc_info.value)


def test_default_client_uses_config(preview_config):
    provider = BlockfrostProvider(preview_config)

    assert provider.base_url == BASE_URL
    assert str(provider._client.base_url).rstrip("/") == BASE_URL
    assert provider._client.headers["project_id"] == "abc123"


@pytest.mark.asyncio
async def test_get_endpoints(preview_config):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.headers["project_id"]))
        return httpx.Response(200, json={"path": request.url.path})

    provider = make_provider(preview_config, handler)

    assert (await provider.get_health())["path"].endswith("/health")
    await provider.get_latest_block()
    await provider.get_latest_epoch()
    await provider.get_genesis_parameters()
    await provider.get_epoch_parameters()
    await provider.get_epoch_parameters(300)
    await provider.get_account_assets("addr_test1abc")
    await provider.get_transaction("f00d")
    await provider.get_transaction_utxos("f00d")
    await provider.aclose()

    paths = [path.replace("/api/v0", "") for _, path, _ in seen]
    assert paths == [
        "/health",
        "/blocks/latest",
        "/epochs/latest",
        "/genesis",
        "/epochs/latest/parameters",
        "/epochs/300/parameters",
        "/addresses/addr_test1abc",
        "/txs/f00d",
        "/txs/f00d/utxos",
    ]
    assert all(method == "GET" and key == "abc123" for method, _, key in seen)


@pytest.mark.asyncio
async def test_list_account_utxos_passes_pagination(preview_config):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    provider = make_provider(preview_config, handler)
    await provider.list_account_utxos("addr_test1abc", page=2, order="desc")

    assert captured["params"] == {"page": "2", "order": "desc"}


@pytest.mark.asyncio
async def test_submit_transaction_sends_cbor(preview_config):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["content_type"] = request.headers["content-type"]
        captured["body"] = request.content
        return httpx.Response(200, content=json.dumps("ab" * 32))

    provider = make_provider(preview_config, handler)
    tx_hash = await provider.submit_transaction("84a400")

    assert tx_hash == "ab" * 32
    assert captured == {
        "method": "POST",
        "content_type": "application/cbor",
        "body": bytes.fromhex("84a400"),
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda p: p.get_account_assets(""),
        lambda p: p.list_account_utxos(""),
        lambda p: p.submit_transaction(b""),
        lambda p: p.get_transaction(""),
        lambda p: p.get_transaction_utxos(""),
    ],
)
async def test_missing_arguments_rejected_before_request(preview_config, call):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    provider = make_provider(preview_config, handler)
    with pytest.raises(ValueError):
        await call(provider)


@pytest.mark.asyncio
async def test_http_error_is_raised(preview_config, caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "Invalid project token."})

    provider = make_provider(preview_config, handler)
    with pytest.raises(httpx.HTTPStatusError):
        await provider.get_health()

    assert "Blockfrost HTTP error for /health: 403" in caplog.text


@pytest.mark.asyncio
async def test_probe_health_isolates_failures(preview_config):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/blocks/latest"):
            return httpx.Response(500, json={"error": "Internal Server Error"})
        if request.url.path.endswith("/epochs/latest"):
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"is_healthy": True})

    provider = make_provider(preview_config, handler)
    health = await provider.probe_health()

    assert health.health == {"is_healthy": True}
    assert health.latest_block is None
    assert health.latest_epoch is None
    assert health.network == "preview"
    assert health.network_magic == 2
    assert health.timestamp.endswith("Z")


@pytest.mark.asyncio
async def test_probe_health_serialises_camel_case(fake_provider):
    health = await fake_provider.probe_health()
    body = health.model_dump(by_alias=True)

    assert body["networkMagic"] == 2
    assert body["latestBlock"]["height"] == 2048
    assert body["latestEpoch"] == {"epoch": 512}


@pytest.mark.parametrize(
    "network, expected",
    [
        ("preview", "Preview"),
        ("preprod", "Preprod"),
        ("mainnet", "Mainnet"),
        ("unknown", "Preview"),
    ],
)
def test_resolve_network_name(network, expected):
    assert resolve_network_name(network) == expected


@pytest.mark.asyncio
async def test_transaction_builder_connect_loads_parameters(fake_provider):
    client = await TransactionBuilderClient.connect(fake_provider, "preview")

    assert client.network_name == "Preview"
    assert client.protocol_parameters["min_fee_a"] == 44
    assert client.describe() == {"networkName": "Preview", "epoch": 512}
    assert fake_provider.calls["epoch_parameters"] == 1


@pytest.mark.asyncio
async def test_transaction_builder_connect_propagates_errors(
    preview_config, provider_factory
):
    provider = provider_factory(
        preview_config, epoch_parameters=RuntimeError("parameters unavailable")
    )

    with pytest.raises(RuntimeError, match="parameters unavailable"):
        await TransactionBuilderClient.connect(provider, "preview")
