"""Configuration loading.

Builds an :class:`AppConfig` from, in increasing priority:

1. model defaults,
2. an optional YAML file (``${ENV_VAR}`` placeholders are expanded),
3. environment variables (``.env`` in the working directory is loaded
   first and never overrides variables that are already set).

CLI flags are applied on top of the result by :mod:`country_mcp.cli`.
"""

import logging
import os
import re
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from country_mcp.config.schema import AppConfig
from country_mcp.constants import CONFIG_ENV_VAR, CONFIG_FILE_NAMES, DEFAULT_PORT
from country_mcp.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})

# Regex for ${VAR_NAME}; captures the variable name inside ${}
_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def expand_env_vars(value: Any) -> Any:
    """Recursively expand ``${VAR}`` references in string values.

    - If the env var is not set, the placeholder is left unchanged.
    - Non-string leaves are returned as-is.
    - Dicts and lists are walked recursively.
    """
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(
            lambda m: os.environ.get(m.group(1), m.group(0)),
            value,
        )
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def resolve_port(raw: Optional[str], default: int = DEFAULT_PORT) -> int:
    """Parse a port number from an environment value.

    Absent, non-numeric and out-of-range values all yield *default*.
    """
    if raw is None or not raw.strip():
        return default
    try:
        port = int(raw.strip())
    except ValueError:
        logger.warning("Ignoring non-numeric port value '%s'; using %d.", raw, default)
        return default
    if not 1 <= port <= 65535:
        logger.warning("Ignoring out-of-range port %d; using %d.", port, default)
        return default
    return port


def find_config_file() -> Optional[str]:
    """Return the config file path from the env var or CWD auto-detection."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path
    for name in CONFIG_FILE_NAMES:
        candidate = os.path.join(os.getcwd(), name)
        if os.path.isfile(candidate):
            return candidate
    return None


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except Exception as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _apply_env_overrides(raw_data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    """Overlay supported environment variables onto the raw config dict."""
    server = dict(raw_data.get("server") or {})
    upstream = dict(raw_data.get("upstream") or {})
    log_cfg = dict(raw_data.get("logging") or {})

    port_raw = environ.get("port", environ.get("PORT"))
    if port_raw is not None:
        server["port"] = resolve_port(port_raw)
    if environ.get("HOST"):
        server["host"] = environ["HOST"]
    if environ.get("COUNTRY_API_BASE_URL"):
        upstream["base_url"] = environ["COUNTRY_API_BASE_URL"]
    if environ.get("LOG_LEVEL"):
        log_cfg["level"] = environ["LOG_LEVEL"]

    merged = dict(raw_data)
    merged["server"] = server
    merged["upstream"] = upstream
    merged["logging"] = log_cfg
    return merged


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


def load_config(
    cfg_fpath: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    use_dotenv: bool = True,
) -> AppConfig:
    """Load, merge and validate the application configuration.

    Args:
        cfg_fpath: Explicit YAML path. ``None`` means ``COUNTRY_MCP_CONFIG``
            or auto-detection; no file at all is fine.
        environ: Environment mapping to read overrides from (defaults to
            ``os.environ``).
        use_dotenv: Load ``.env`` from the working directory first.

    Raises:
        ConfigurationError: unreadable file or invalid values.
    """
    if use_dotenv:
        load_dotenv(override=False)
    env = os.environ if environ is None else environ

    if cfg_fpath is None:
        cfg_fpath = find_config_file()

    raw_data: Dict[str, Any] = {}
    if cfg_fpath is not None:
        logger.info("Loading configuration from %s", os.path.abspath(cfg_fpath))
        raw_data = expand_env_vars(_read_config_file(cfg_fpath))

    merged = _apply_env_overrides(raw_data, env)
    try:
        config = AppConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Configuration validation failed:\n{_format_validation_errors(exc)}"
        ) from exc

    logger.debug("Configuration loaded: %s", config.model_dump())
    return config
