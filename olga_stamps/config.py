"""Configuration loader for encoder options and the RPC connection.

Values are resolved in this order: explicit overrides, environment
variables, the YAML config file, then built-in defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

from .addresses import NETWORKS
from .model import EncodingOptions


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG_PATH = Path.home() / ".olga_stamps.yaml"
DEFAULT_RPC_PORT = 8332

_ENCODING_ENV = {
    "dust_value": "OLGA_DUST_VALUE",
    "max_outputs": "OLGA_MAX_OUTPUTS",
    "use_compression": "OLGA_USE_COMPRESSION",
    "compression_threshold": "OLGA_COMPRESSION_THRESHOLD",
    "network": "OLGA_NETWORK",
    "from_address": "OLGA_FROM_ADDRESS",
    "to_address": "OLGA_TO_ADDRESS",
}


@dataclass
class RPCConfig:
    """Connection details for a Bitcoin Core compatible node."""

    user: str
    password: str
    host: str = "127.0.0.1"
    port: int = DEFAULT_RPC_PORT
    use_https: bool = False
    wallet: str | None = None

    @property
    def base_url(self) -> str:
        scheme = "https" if self.use_https else "http"
        return f"{scheme}://{self.host}:{self.port}"


def _resolve_path(config_path: str | Path | None) -> tuple[Path, bool]:
    if config_path is not None:
        return Path(config_path).expanduser(), True
    return DEFAULT_CONFIG_PATH, False


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML mapping")
    return loaded


def _section(config: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected '{name}' to be a mapping in {path}")
    return section


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "y", "on"}:
            return True
        if normalized in {"0", "false", "no", "n", "off"}:
            return False
    return None


def _coerce_int(raw: Any, *, name: str, source: str) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid {name} in {source}: {raw}") from exc


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def load_encoding_options(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> EncodingOptions:
    """Load :class:`EncodingOptions` from overrides, environment and YAML."""

    env_map = os.environ if env is None else env
    path, required = _resolve_path(config_path)
    section = _section(_load_config_file(path, required=required), "encoding", path)
    override_map = dict(overrides or {})
    defaults = EncodingOptions.default()

    def resolve(name: str) -> tuple[Any, Any, Any]:
        return override_map.get(name), env_map.get(_ENCODING_ENV[name]) or None, section.get(name)

    resolved: dict[str, Any] = {}
    for name in ("dust_value", "max_outputs", "compression_threshold"):
        override, from_env, from_file = resolve(name)
        resolved[name] = _first_value(
            _coerce_int(override, name=name, source="overrides"),
            _coerce_int(from_env, name=name, source="environment"),
            _coerce_int(from_file, name=name, source=str(path)),
            default=getattr(defaults, name),
        )
        if resolved[name] < 0 or (name == "max_outputs" and resolved[name] == 0):
            raise ConfigurationError(f"{name} must be positive, got {resolved[name]}")

    override, from_env, from_file = resolve("use_compression")
    resolved["use_compression"] = _first_value(
        _coerce_bool(override),
        _coerce_bool(from_env),
        _coerce_bool(from_file),
        default=defaults.use_compression,
    )

    for name in ("network", "from_address", "to_address"):
        override, from_env, from_file = resolve(name)
        resolved[name] = _first_value(override, from_env, from_file, default=getattr(defaults, name))

    if resolved["network"] not in NETWORKS:
        raise ConfigurationError(
            f"Unknown network {resolved['network']!r}; expected one of {', '.join(NETWORKS)}"
        )
    return EncodingOptions(**resolved)


def _parse_endpoint(raw: str | None) -> tuple[str | None, int | None, bool | None]:
    if not raw:
        return None, None, None
    parsed = urlparse(raw)
    if not parsed.scheme and not parsed.hostname:
        raise ConfigurationError(f"Invalid RPC endpoint URL: {raw}")
    use_https = parsed.scheme.lower() == "https" if parsed.scheme else None
    return parsed.hostname or None, parsed.port, use_https


def load_rpc_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> RPCConfig:
    """Load RPC configuration from environment variables and optional YAML."""

    env_map = os.environ if env is None else env
    path, required = _resolve_path(config_path)
    rpc_section = _section(_load_config_file(path, required=required), "rpc", path)
    override_map = dict(overrides or {})

    endpoint_host, endpoint_port, endpoint_use_https = _parse_endpoint(
        _first_value(
            override_map.get("endpoint"),
            env_map.get("BITCOIN_RPC_ENDPOINT") or env_map.get("BITCOIN_RPC_URL"),
            rpc_section.get("endpoint"),
        )
    )

    user = _first_value(override_map.get("user"), env_map.get("BITCOIN_RPC_USER"), rpc_section.get("user"))
    password = _first_value(
        override_map.get("password"), env_map.get("BITCOIN_RPC_PASSWORD"), rpc_section.get("password")
    )
    if not user or not password:
        raise ConfigurationError(
            "RPC credentials must be provided via BITCOIN_RPC_* environment variables or a config file"
        )

    host = _first_value(
        override_map.get("host"),
        endpoint_host,
        env_map.get("BITCOIN_RPC_HOST"),
        rpc_section.get("host"),
        default="127.0.0.1",
    )
    port = _first_value(
        _coerce_int(override_map.get("port"), name="port", source="overrides"),
        endpoint_port,
        _coerce_int(env_map.get("BITCOIN_RPC_PORT"), name="port", source="environment"),
        _coerce_int(rpc_section.get("port"), name="port", source=f"{path} rpc.port"),
        default=DEFAULT_RPC_PORT,
    )
    use_https = _first_value(
        _coerce_bool(override_map.get("use_https")),
        endpoint_use_https,
        _coerce_bool(env_map.get("BITCOIN_RPC_USE_HTTPS")),
        _coerce_bool(rpc_section.get("use_https")),
        default=False,
    )
    wallet = _first_value(
        override_map.get("wallet"), env_map.get("BITCOIN_RPC_WALLET"), rpc_section.get("wallet")
    )

    return RPCConfig(
        user=str(user),
        password=str(password),
        host=str(host),
        port=port,
        use_https=bool(use_https),
        wallet=wallet,
    )
