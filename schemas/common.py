"""Shared pydantic base models."""

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from core.utils import is_valid_cardano_address


class CamelModel(BaseModel):
    """Model that reads and writes camelCase JSON keys.

    Python code keeps using snake_case attribute names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WalletRequest(CamelModel):
    """Base for requests issued on behalf of a connected wallet."""

    wallet_address: str

    @field_validator("wallet_address")
    @classmethod
    def check_wallet_address(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_cardano_address(value):
            raise ValueError("walletAddress must be a Cardano address (addr...)")
        return value
