"""Tests for core/config.py"""

import logging
import os
from unittest.mock import patch

import pytest

from core.config import (
    LEGACY_FRONTEND_ORIGIN,
    VERCEL_PREVIEW_ORIGIN_REGEX,
    AppSettings,
    CardanoConfig,
)
from core.exceptions import ConfigurationError


def test_defaults_to_preview_network():
    with patch.dict(os.environ, {}, clear=True):
        config = CardanoConfig.from_env()

    assert config.network == "preview"
    assert config.network_magic == 2
    assert config.network_name == "Preview"
    assert config.blockfrost_url == "https://cardano-preview.blockfrost.io/api/v0"
    assert config.blockfrost_project_id is None
    assert config.client_init_timeout == 5
    assert config.client_fallback_timeout == 3
    assert config.request_timeout == 10
    assert config.silent is False


@pytest.mark.parametrize(
    "network, magic, name",
    [("preprod", 1, "Preprod"), ("mainnet", 764824073, "Mainnet")],
)
def test_network_presets(network, magic, name):
    with patch.dict(os.environ, {"CARDANO_NETWORK": network}, clear=True):
        config = CardanoConfig.from_env()

    assert config.network_magic == magic
    assert config.network_name == name
    assert network in config.blockfrost_url


def test_unknown_network_falls_back_to_preview(caplog):
    caplog.set_level(logging.WARNING)
    with patch.dict(os.environ, {"CARDANO_NETWORK": "sidechain"}, clear=True):
        config = CardanoConfig.from_env()

    assert config.network == "preview"
    assert "Unknown CARDANO_NETWORK 'sidechain'" in caplog.text


def test_environment_overrides():
    env = {
        "CARDANO_NETWORK": "Preprod",
        "CARDANO_NETWORK_MAGIC": "42",
        "CARDANO_BLOCKFROST_URL": "http://localhost:3000/api",
        "CARDANO_BLOCKFROST_PROJECT_ID": "abc123",
        "CARDANO_LOG_LEVEL": "silent",
        "CARDANO_CLIENT_INIT_TIMEOUT": "7.5",
    }
    with patch.dict(os.environ, env, clear=True):
        config = CardanoConfig.from_env()

    assert config.network == "preprod"
    assert config.network_magic == 42
    assert config.blockfrost_url == "http://localhost:3000/api"
    assert config.blockfrost_project_id == "abc123"
    assert config.silent is True
    assert config.client_init_timeout == 7.5


@pytest.mark.parametrize(
    "name, value",
    [
        ("CARDANO_NETWORK_MAGIC", "two"),
        ("CARDANO_CLIENT_INIT_TIMEOUT", "soon"),
        ("CARDANO_CLIENT_FALLBACK_TIMEOUT", "-1"),
        ("CARDANO_REQUEST_TIMEOUT", "0"),
    ],
)
def test_invalid_numbers_raise_configuration_error(name, value):
    with patch.dict(os.environ, {name: value}, clear=True):
        with pytest.raises(ConfigurationError) as exc_info:
            CardanoConfig.from_env()

    assert name in str(exc_info.value)


def test_config_is_frozen(preview_config):
    with pytest.raises(ValueError):
        preview_config.network = "mainnet"


def test_app_settings_defaults():
    with patch.dict(os.environ, {}, clear=True):
        settings = AppSettings.from_env()

    assert settings.mongodb_uri is None
    assert settings.mongodb_database == "inverstra"
    assert settings.port == 5008
    assert settings.is_development is False
    assert settings.allowed_origins == [
        "http://localhost:3000",
        "http://localhost:3001",
        LEGACY_FRONTEND_ORIGIN,
    ]
    assert settings.allowed_origin_regex is None


def test_app_settings_with_frontend():
    env = {
        "FRONTEND_URL": "https://inverstra.example.org",
        "ENVIRONMENT": "Development",
        "PORT": "8080",
        "MONGODB_URI": "mongodb://localhost:27017",
    }
    with patch.dict(os.environ, env, clear=True):
        settings = AppSettings.from_env()

    assert "https://inverstra.example.org" in settings.allowed_origins
    assert settings.allowed_origin_regex == VERCEL_PREVIEW_ORIGIN_REGEX
    assert settings.is_development is True
    assert settings.port == 8080
    assert settings.mongodb_uri == "mongodb://localhost:27017"


def test_invalid_port_raises():
    with patch.dict(os.environ, {"PORT": "http"}, clear=True):
        with pytest.raises(ConfigurationError):
            AppSettings.from_env()
