"""
Network presets and extractor configuration.

Settings come from an optional YAML file, overridden by environment
variables, overridden in turn by whatever the caller passes explicitly.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = "settings.yaml"
DEFAULT_NETWORK = "testnet"
DEFAULT_TIMEOUT = 30.0

ENV_RPC_URL = "SOROBAN_RPC_URL"
ENV_NETWORK = "SOROBAN_NETWORK"
ENV_TIMEOUT = "SOROBAN_RPC_TIMEOUT"


@dataclass(frozen=True)
class NetworkConfig:
    """RPC endpoint and passphrase of a Stellar network."""
    name: str
    rpc_url: str
    network_passphrase: str

    @classmethod
    def from_name(cls, name: str) -> "NetworkConfig":
        key = name.lower()
        key = NETWORK_ALIASES.get(key, key)
        if key not in NETWORKS:
            raise ValueError(
                f"Unknown network '{name}'. Use testnet, mainnet, futurenet, local, "
                "or provide an RPC URL"
            )
        return NETWORKS[key]

    @classmethod
    def custom(cls, rpc_url: str, network_passphrase: str) -> "NetworkConfig":
        return cls(name="custom", rpc_url=rpc_url, network_passphrase=network_passphrase)


NETWORKS = {
    "testnet": NetworkConfig(
        "testnet", "https://soroban-testnet.stellar.org", "Test SDF Network ; September 2015"
    ),
    "mainnet": NetworkConfig(
        "mainnet", "https://soroban.stellar.org", "Public Global Stellar Network ; September 2015"
    ),
    "futurenet": NetworkConfig(
        "futurenet", "https://rpc-futurenet.stellar.org", "Test SDF Future Network ; October 2022"
    ),
    "local": NetworkConfig(
        "local", "http://localhost:8000/soroban/rpc", "Standalone Network ; February 2017"
    ),
}

NETWORK_ALIASES = {"pubnet": "mainnet", "standalone": "local"}


def load_settings(path: Union[str, Path, None] = DEFAULT_SETTINGS_PATH) -> Dict[str, Any]:
    """Load settings from a YAML file and environment variables.

    A missing file is not an error. Recognised keys are ``rpc_url``,
    ``network`` and ``timeout``.
    """
    settings: Dict[str, Any] = {}
    if path is not None:
        settings_path = Path(path)
        if settings_path.exists():
            with open(settings_path, "r") as f:
                settings = yaml.safe_load(f) or {}
            if not isinstance(settings, dict):
                raise ValueError(f"{settings_path} must contain a mapping")
            logger.debug("Loaded settings from %s", settings_path)

    # Environment variables override file settings
    if os.getenv(ENV_RPC_URL):
        settings["rpc_url"] = os.getenv(ENV_RPC_URL)
    if os.getenv(ENV_NETWORK):
        settings["network"] = os.getenv(ENV_NETWORK)
    if os.getenv(ENV_TIMEOUT):
        settings["timeout"] = os.getenv(ENV_TIMEOUT)

    return settings


@dataclass
class ExtractorConfig:
    """Configuration for one extraction run."""
    rpc_url: str
    timeout: float = DEFAULT_TIMEOUT
    network: str = DEFAULT_NETWORK

    @classmethod
    def for_network(cls, network: str = DEFAULT_NETWORK, timeout: float = DEFAULT_TIMEOUT) -> "ExtractorConfig":
        preset = NetworkConfig.from_name(network)
        return cls(rpc_url=preset.rpc_url, timeout=timeout, network=preset.name)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Dict[str, Any]] = None,
        network: Optional[str] = None,
        rpc_url: Optional[str] = None,
    ) -> "ExtractorConfig":
        """Build a config; explicit arguments win over ``settings`` values.

        An explicit ``network`` selects that preset's endpoint even when the
        settings carry an ``rpc_url``.
        """
        settings = settings or {}
        if rpc_url is None and network is None:
            rpc_url = settings.get("rpc_url")
        network = network or settings.get("network") or DEFAULT_NETWORK
        timeout = float(settings.get("timeout", DEFAULT_TIMEOUT))

        if rpc_url:
            return cls(rpc_url=rpc_url, timeout=timeout, network=network)
        return cls.for_network(network, timeout)
