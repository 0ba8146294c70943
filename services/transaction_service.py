"""Façade over the transaction builder client.

Each operation records its request, waits a bounded time for the shared
client and turns every outcome into a ``TransactionResult``. Nothing raises
out of an operation.
"""

import logging
from typing import Any, Awaitable, Callable, List, Optional

from core.config import CardanoConfig
from core.event_log import DEFAULT_HISTORY_LIMIT, BoundedEventLog, Subscriber
from core.exceptions import ConfigurationError, DependencyUnavailable
from core.single_flight import InitializationState, SingleFlightInitializer
from providers.blockfrost import ChainDataProvider
from providers.transaction_builder import TransactionBuilderClient
from schemas.event_log import EventLogEntry
from schemas.transactions import (
    CreatePredictionTxRequest,
    FinaliseTxRequest,
    NetworkDiagnostics,
    ProviderHealth,
    TransactionResult,
    VoteTxRequest,
)

logger = logging.getLogger(__name__)

CLIENT_NAME = "transaction builder"
INIT_FAILED_MESSAGE = "Transaction builder initialisation failed"

ClientFactory = Callable[[], Awaitable[Any]]


class CardanoTransactionService:
    """Create, vote and finalise operations backed by one lazily built client.

    Args:
        config: Cardano configuration (network, timeouts, log level).
        provider: Chain data provider, or None when it could not be built.
        client_factory: Overrides how the client is connected.
        event_log: Shared event log; a new one is created when omitted.
        provider_error: Why ``provider`` is missing, reported in diagnostics.
    """

    def __init__(
        self,
        config: CardanoConfig,
        provider: Optional[ChainDataProvider],
        *,
        client_factory: Optional[ClientFactory] = None,
        event_log: Optional[BoundedEventLog] = None,
        provider_error: Optional[str] = None,
    ):
        self.config = config
        self.provider = provider
        self.provider_error = provider_error
        self.events = event_log or BoundedEventLog(silent=config.silent, sink=logger)
        self._client = SingleFlightInitializer(
            client_factory or self._connect_client,
            name=CLIENT_NAME,
            timeout=config.client_init_timeout,
            event_log=self.events,
            describe=self._describe_client,
        )

    @property
    def network(self) -> str:
        return self.config.network

    @property
    def client_state(self) -> InitializationState:
        return self._client.state

    async def _connect_client(self) -> TransactionBuilderClient:
        if self.provider is None:
            raise ConfigurationError(
                self.provider_error or "Chain data provider is not configured"
            )
        return await TransactionBuilderClient.connect(self.provider, self.network)

    def _describe_client(self, client: Any) -> dict:
        describe = getattr(client, "describe", None)
        if callable(describe):
            return describe()
        return {"networkName": self.config.network_name}

    # --- Event log --- #

    def record_event(self, event: str, payload: Optional[dict] = None) -> EventLogEntry:
        return self.events.record(event, payload)

    def get_history(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[EventLogEntry]:
        return self.events.recent(limit)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.events.subscribe(callback)

    # --- Client lifecycle --- #

    async def ensure_client(self) -> Any:
        """Return the shared client, initialising it on first use."""
        return await self._client.ensure()

    def reset_client(self) -> None:
        """Drop a ready client so the next operation connects again."""
        self._client.reset()

    async def aclose(self) -> None:
        # The attempt must not outlive the provider it reads from
        await self._client.close()
        if self.provider is not None:
            await self.provider.aclose()

    # --- Operations --- #

    async def create_prediction_transaction(
        self, request: CreatePredictionTxRequest
    ) -> TransactionResult:
        """Prepare the on-chain side of a new prediction.

        The client wait is short; when the client is not ready the prediction
        is still accepted by the persistence layer, so the result is pending
        rather than an error.
        """
        self.record_event(
            "create_prediction_requested", request.model_dump(by_alias=True, mode="json")
        )
        try:
            await self._client.ensure_within(self.config.client_fallback_timeout)
        except DependencyUnavailable as e:
            self.record_event(
                "client_unavailable", {"operation": "create_prediction", "error": e.message}
            )
            result = TransactionResult.pending(
                reason=f"{CLIENT_NAME} unavailable",
                message="Prediction queued for creation (database fallback active)",
                network=self.network,
                note="Cardano transaction building pending implementation",
            )
        else:
            result = TransactionResult.not_implemented("create prediction", self.network)
        return self._finish("create_prediction", result)

    async def vote_transaction(self, request: VoteTxRequest) -> TransactionResult:
        self.record_event("vote_requested", request.model_dump(by_alias=True, mode="json"))
        return self._finish("vote", await self._require_client("vote"))

    async def finalise_transaction(self, request: FinaliseTxRequest) -> TransactionResult:
        self.record_event(
            "finalise_requested", request.model_dump(by_alias=True, mode="json")
        )
        return self._finish("finalise", await self._require_client("finalise"))

    async def _require_client(self, operation: str) -> TransactionResult:
        # vote and finalise have no fallback, so a missing client is an error
        try:
            await self._client.ensure()
        except DependencyUnavailable as e:
            self.record_event(
                "client_unavailable", {"operation": operation, "error": e.message}
            )
            return TransactionResult.failure(INIT_FAILED_MESSAGE, e.message, self.network)
        return TransactionResult.not_implemented(operation, self.network)

    def _finish(self, operation: str, result: TransactionResult) -> TransactionResult:
        self.record_event(f"{operation}_completed", {"status": result.status.value})
        return result

    # --- Diagnostics --- #

    async def get_network_diagnostics(
        self, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> NetworkDiagnostics:
        """Provider health probes plus the recent event history."""
        if self.provider is None:
            health = ProviderHealth(
                network=self.network,
                network_magic=self.config.network_magic,
                error=self.provider_error or "Chain data provider is not configured",
            )
        else:
            health = await self.provider.probe_health()
        return NetworkDiagnostics(
            diagnostics=health,
            client_state=self.client_state.value,
            recent_events=self.get_history(limit),
        )
