"""
Configuration for an extraction run.

Environment variables are loaded from Azure Key Vault, with optional per-user
overrides, and from a .env file for anything the vault does not provide.
Values already present in the environment are never overwritten.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError
from .extractor import MAX_PAGE_SIZE, PAGE_SIZE as DEFAULT_PAGE_SIZE
from .models import DEFAULT_SCHEMA

logger = logging.getLogger(__name__)

# Known env vars to fetch from Key Vault (in lookup order for per-user)
ENV_VARS = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "DATABASE_URL",
    "SCHEMA",
)

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_TIMEOUT = 60


def _env_to_secret_name(env_key: str) -> str:
    """Convert env var name to Key Vault secret name (underscores -> hyphens)."""
    return env_key.replace("_", "-")


def _load_from_dotenv() -> None:
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def _load_from_keyvault(vault_name: str, user_name: str) -> None:
    from azure.identity import DefaultAzureCredential
    from azure.keyvault.secrets import SecretClient

    client = SecretClient(vault_url=f"https://{vault_name}.vault.azure.net/", credential=DefaultAzureCredential())
    for var in ENV_VARS:
        if var in os.environ:
            continue  # Do not overwrite (CLI override)
        base_name = _env_to_secret_name(var)
        secret_names = [f"{base_name}-{user_name}", base_name] if user_name else [base_name]
        for name in secret_names:
            try:
                secret = client.get_secret(name)
            except Exception as e:
                logger.debug(f"Key Vault secret {name} not available: {e}")
                continue
            if secret and secret.value:
                os.environ[var] = secret.value
                break


def load_env() -> None:
    """
    Load env vars from Azure Key Vault (when configured) and .env.
    - KEYVAULT_NAME: vault name (required for Key Vault)
    - AZURE_USER_NAME: optional; use {VAR}-{USER} secrets first, then {VAR}
    """
    # KEYVAULT_NAME itself may live in .env
    _load_from_dotenv()
    vault_name = os.environ.get("KEYVAULT_NAME", "").strip()
    if not vault_name:
        return
    user_name = os.environ.get("AZURE_USER_NAME", "").strip().upper()
    try:
        _load_from_keyvault(vault_name, user_name)
    except Exception as e:
        logger.warning(f"Could not read secrets from Key Vault '{vault_name}', using .env only: {e}")


def _int_env(name: str, default: int, maximum: int | None = None) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ConfigError(f"{name} must be positive, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigError(f"{name} must be at most {maximum}, got {value}")
    return value


@dataclass(frozen=True)
class ExtractorConfig:
    supabase_url: str
    supabase_key: str
    database_url: str | None = None
    schema: str = DEFAULT_SCHEMA
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    page_size: int = DEFAULT_PAGE_SIZE
    timeout: int = DEFAULT_TIMEOUT

    @property
    def has_privileged_access(self) -> bool:
        return bool(self.database_url)

    @property
    def database_host(self) -> str | None:
        """DATABASE_URL without credentials, safe for logging."""
        if not self.database_url:
            return None
        return self.database_url.split("@")[-1]

    @classmethod
    def from_env(cls) -> "ExtractorConfig":
        """Build the config from the current environment.

        Raises ConfigError when SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is missing.
        """
        supabase_url = os.environ.get("SUPABASE_URL", "").strip()
        supabase_key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "").strip()
        missing = [
            name
            for name, value in (("SUPABASE_URL", supabase_url), ("SUPABASE_SERVICE_ROLE_KEY", supabase_key))
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        return cls(
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            database_url=os.environ.get("DATABASE_URL", "").strip() or None,
            schema=os.environ.get("SCHEMA", DEFAULT_SCHEMA).strip() or DEFAULT_SCHEMA,
            output_dir=Path(os.environ.get("EXTRACT_OUTPUT_DIR", "").strip() or DEFAULT_OUTPUT_DIR),
            page_size=_int_env("EXTRACT_PAGE_SIZE", DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
            timeout=_int_env("SUPABASE_TIMEOUT", DEFAULT_TIMEOUT),
        )
