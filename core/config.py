"""Environment-backed configuration for the Cardano integration and the API."""

import logging
import os
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

NetworkKey = Literal["preview", "preprod", "mainnet"]

DEFAULT_NETWORK = "preview"
DEFAULT_OGMIOS_URL = "https://ogmios.preview.world.dev.cardano.org"
LEGACY_FRONTEND_ORIGIN = "https://hack-india25-maverick1.vercel.app"
VERCEL_PREVIEW_ORIGIN_REGEX = r"https://.*\.vercel\.app"


class NetworkPreset(BaseModel):
    """Static defaults for one of the supported Cardano networks."""

    model_config = ConfigDict(frozen=True)

    magic: int
    blockfrost_url: str
    display_name: str


NETWORK_PRESETS: Dict[str, NetworkPreset] = {
    "preview": NetworkPreset(
        magic=2,
        blockfrost_url="https://cardano-preview.blockfrost.io/api/v0",
        display_name="Preview",
    ),
    "preprod": NetworkPreset(
        magic=1,
        blockfrost_url="https://cardano-preprod.blockfrost.io/api/v0",
        display_name="Preprod",
    ),
    "mainnet": NetworkPreset(
        magic=764824073,
        blockfrost_url="https://cardano-mainnet.blockfrost.io/api/v0",
        display_name="Mainnet",
    ),
}


def _read_number(name: str, default: str, cast=float):
    raw = os.getenv(name, default)
    try:
        value = cast(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


class CardanoConfig(BaseModel):
    """Settings for the Blockfrost provider and the transaction builder client."""

    model_config = ConfigDict(frozen=True)

    network: NetworkKey = Field(DEFAULT_NETWORK, description="Selected network preset")
    network_magic: int = Field(..., description="Network magic number")
    blockfrost_url: str = Field(..., description="Blockfrost API base URL")
    blockfrost_project_id: Optional[str] = Field(
        None, description="Blockfrost project id (required by the provider)"
    )
    ogmios_url: str = Field(DEFAULT_OGMIOS_URL, description="Ogmios endpoint")
    log_level: str = Field("info", description="'silent' disables event-log echo")
    client_init_timeout: float = Field(
        5.0, gt=0, description="Ceiling for one client initialisation attempt (s)"
    )
    client_fallback_timeout: float = Field(
        3.0, gt=0, description="How long the create path waits for the client (s)"
    )
    request_timeout: float = Field(10.0, gt=0, description="HTTP timeout (s)")

    @property
    def network_name(self) -> str:
        """Network name in the form the transaction builder expects."""
        return NETWORK_PRESETS[self.network].display_name

    @property
    def silent(self) -> bool:
        return self.log_level.lower() == "silent"

    @classmethod
    def for_network(cls, network: str, **overrides) -> "CardanoConfig":
        """Build a config from a preset, applying explicit overrides."""
        preset = NETWORK_PRESETS[network]
        values = {
            "network": network,
            "network_magic": preset.magic,
            "blockfrost_url": preset.blockfrost_url,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_env(cls) -> "CardanoConfig":
        """Load the Cardano configuration from environment variables.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed.
        """
        network = os.getenv("CARDANO_NETWORK", DEFAULT_NETWORK).strip().lower()
        if network not in NETWORK_PRESETS:
            logger.warning(
                f"Unknown CARDANO_NETWORK '{network}', falling back to '{DEFAULT_NETWORK}'"
            )
            network = DEFAULT_NETWORK

        magic_override = os.getenv("CARDANO_NETWORK_MAGIC")
        network_magic = None
        if magic_override:
            try:
                network_magic = int(magic_override)
            except ValueError as e:
                raise ConfigurationError(
                    f"CARDANO_NETWORK_MAGIC must be an integer, got {magic_override!r}"
                ) from e

        return cls.for_network(
            network,
            network_magic=network_magic,
            blockfrost_url=os.getenv("CARDANO_BLOCKFROST_URL") or None,
            blockfrost_project_id=os.getenv("CARDANO_BLOCKFROST_PROJECT_ID") or None,
            ogmios_url=os.getenv("CARDANO_OGMIOS_URL") or None,
            log_level=os.getenv("CARDANO_LOG_LEVEL") or None,
            client_init_timeout=_read_number("CARDANO_CLIENT_INIT_TIMEOUT", "5"),
            client_fallback_timeout=_read_number(
                "CARDANO_CLIENT_FALLBACK_TIMEOUT", "3"
            ),
            request_timeout=_read_number("CARDANO_REQUEST_TIMEOUT", "10"),
        )


class AppSettings(BaseModel):
    """Settings for the HTTP server and persistence."""

    model_config = ConfigDict(frozen=True)

    mongodb_uri: Optional[str] = None
    mongodb_database: str = "inverstra"
    frontend_url: Optional[str] = None
    environment: str = "production"
    port: int = 5008

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def allowed_origins(self) -> List[str]:
        origins = ["http://localhost:3000", "http://localhost:3001"]
        if self.frontend_url:
            origins.append(self.frontend_url)
        origins.append(LEGACY_FRONTEND_ORIGIN)
        return origins

    @property
    def allowed_origin_regex(self) -> Optional[str]:
        # Vercel preview deployments are only trusted next to a configured frontend
        return VERCEL_PREVIEW_ORIGIN_REGEX if self.frontend_url else None

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            mongodb_uri=os.getenv("MONGODB_URI") or None,
            mongodb_database=os.getenv("MONGODB_DATABASE", "inverstra"),
            frontend_url=os.getenv("FRONTEND_URL") or None,
            environment=os.getenv("ENVIRONMENT", "production"),
            port=_read_number("PORT", "5008", cast=int),
        )
