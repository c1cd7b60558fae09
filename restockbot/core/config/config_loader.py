"""Configuration loader with YAML and environment variable support.

This is the only place that reads the process environment. Everything
downstream receives an ``AppConfig``.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic import SecretStr, ValidationError

from ..exceptions import ConfigurationError, MissingEnvironmentVariableError
from .config_models import AppConfig

USERNAME_ENV_VAR = "RESTOCKBOT_USERNAME"
PASSWORD_ENV_VAR = "RESTOCKBOT_PASSWORD"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

# Sensitive configuration keys to mask in logs
SENSITIVE_CONFIG_KEYS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "card_number",
    "cvv",
    "sid",
    "webhook",
    "auth",
})


def load_env_variables(env_file: Optional[Path] = None) -> None:
    """Load environment variables from a .env file, if one exists."""
    env_path = env_file or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment variables from {env_path}")


def substitute_env_vars(value: Any, environ: Mapping[str, str]) -> Any:
    """
    Recursively substitute ``${VAR}`` placeholders in configuration values.

    Unset variables become empty strings, which the model validators then
    reject or replace with defaults.
    """
    if isinstance(value, str):
        for match in _ENV_PATTERN.findall(value):
            env_value = environ.get(match)
            if env_value is None:
                logger.debug(f"Environment variable '{match}' not set, using empty string")
                env_value = ""
            value = value.replace(f"${{{match}}}", env_value)
        return value
    if isinstance(value, dict):
        return {k: substitute_env_vars(v, environ) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute_env_vars(item, environ) for item in value]
    return value


def _safe_config_summary(config: Any) -> Any:
    """Return a copy of a config dict with sensitive values masked as "[REDACTED]"."""
    if not isinstance(config, dict):
        return config

    safe_config: Dict[str, Any] = {}
    for key, value in config.items():
        key_lower = str(key).lower()
        if any(pattern in key_lower for pattern in SENSITIVE_CONFIG_KEYS):
            safe_config[key] = "[REDACTED]"
        elif isinstance(value, dict):
            safe_config[key] = _safe_config_summary(value)
        elif isinstance(value, list):
            safe_config[key] = [_safe_config_summary(item) for item in value]
        else:
            safe_config[key] = value
    return safe_config


def apply_credential_fallback(config: AppConfig, environ: Mapping[str, str]) -> AppConfig:
    """
    Fill missing login fields from the environment.

    Raises:
        MissingEnvironmentVariableError: If a credential is neither in the
            config nor in the environment
    """
    login = config.login
    username = login.username or environ.get(USERNAME_ENV_VAR, "")
    password = login.password.get_secret_value() or environ.get(PASSWORD_ENV_VAR, "")

    if not username:
        raise MissingEnvironmentVariableError(USERNAME_ENV_VAR, "login.username")
    if not password:
        raise MissingEnvironmentVariableError(PASSWORD_ENV_VAR, "login.password")

    config.login = login.model_copy(
        update={"username": username, "password": SecretStr(password)}
    )
    return config


def parse_config(data: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Validate a raw config dict into an ``AppConfig``.

    Raises:
        ConfigurationError: On schema violations or missing credentials
    """
    environ = os.environ if environ is None else environ
    data = substitute_env_vars(data, environ)
    try:
        config = AppConfig.from_dict(data)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ConfigurationError(
            f"Invalid configuration: {'; '.join(problems)}",
            details={"errors": problems},
        ) from e
    return apply_credential_fallback(config, environ)


def load_config(
    config_path: str = "config/config.yaml",
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """
    Load configuration from a YAML file with environment variable substitution.

    Args:
        config_path: Path to YAML configuration file
        environ: Environment mapping (defaults to ``os.environ`` after loading .env)

    Returns:
        Validated application configuration

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if environ is None:
        load_env_variables()
        environ = os.environ

    config_file = Path(config_path)
    if not config_file.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            details={"path": str(config_path)},
        )

    logger.info(f"Loading config from {config_file}")
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")

    logger.debug(f"Raw configuration: {_safe_config_summary(raw)}")
    config = parse_config(raw, environ)
    logger.info(
        f"Configuration loaded: {len(config.products)} product(s), "
        f"interval={config.interval}s, dry_run={config.dry_run}, "
        f"strategy={config.retailer.strategy}"
    )
    return config
