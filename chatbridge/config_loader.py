"""YAML configuration for the bridge.

String values may reference environment variables as ``${NAME}`` or
``$NAME``. Lookups consult the ``.env`` file next to the config first, then
the process environment. A reference that resolves nowhere is left as is.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("chatbridge")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

_ENV_REFERENCE = re.compile(r"\$\{(?P<braced>[^}]+)\}|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)")


def resolve_config_path(path: str) -> Path:
    """Anchor relative paths at the project root."""
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _read_dotenv(config_path: Path, env_path: Optional[str]) -> dict[str, str]:
    dotenv_path = resolve_config_path(env_path) if env_path else config_path.with_name(".env")
    if not dotenv_path.exists():
        return {}
    logger.info(f"Loading environment variables from {dotenv_path}")
    return {name: value for name, value in dotenv_values(dotenv_path).items() if value is not None}


def load_config(
    path: Optional[str] = None,
    env_path: Optional[str] = None,
    substitute_env: bool = True,
) -> dict:
    """Read the YAML config and expand environment references.

    Args:
        path: Config file; CHATBRIDGE_CONFIG or the bundled default when omitted.
        env_path: .env file to use instead of the one beside the config.
        substitute_env: Set False to keep ``$NAME`` references verbatim.

    Raises:
        RuntimeError: If the config file does not exist.
    """
    config_path = resolve_config_path(path or os.getenv("CHATBRIDGE_CONFIG") or DEFAULT_CONFIG_PATH)
    logger.info(f"Loading configuration from {config_path}")

    if not config_path.is_file():
        logger.error(f"Config file not found: {config_path}")
        raise RuntimeError(f"Config file not found: {config_path}")

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not substitute_env:
        return raw
    return _substitute_env_vars(raw, _read_dotenv(config_path, env_path))


def _lookup(name: str, overrides: Mapping[str, str]) -> Optional[str]:
    if name in overrides:
        return overrides[name]
    return os.environ.get(name)


def _substitute_env_vars(obj: Any, env_values: Optional[Mapping[str, str]] = None) -> Any:
    """Expand ``${NAME}`` / ``$NAME`` in every string of a parsed config tree."""
    overrides = env_values or {}

    if isinstance(obj, str):

        def expand(match: re.Match) -> str:
            name = match.group("braced") or match.group("bare")
            value = _lookup(name, overrides)
            if value is None:
                logger.warning(f"Environment variable '{name}' referenced in config is not set")
                return match.group(0)
            return value

        return _ENV_REFERENCE.sub(expand, obj)
    if isinstance(obj, Mapping):
        return {key: _substitute_env_vars(value, overrides) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, overrides) for item in obj]
    return obj


def server_settings(config: Mapping[str, Any]) -> tuple[str, int]:
    """Bind address for the launcher; CHATBRIDGE_HOST/CHATBRIDGE_PORT win over config."""
    server = config.get("server") or {}
    host = os.getenv("CHATBRIDGE_HOST") or str(server.get("host", DEFAULT_HOST))

    raw_port = os.getenv("CHATBRIDGE_PORT") or server.get("port", DEFAULT_PORT)
    try:
        port = int(raw_port)
    except (TypeError, ValueError):
        logger.warning(f"Invalid port {raw_port!r}, falling back to {DEFAULT_PORT}")
        port = DEFAULT_PORT
    return host, port
