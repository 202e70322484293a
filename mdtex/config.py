"""
Configuration for MdTex.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)

Conversion profiles are not part of this file; they live in the settings
YAML handled by ProfileStore (see vault.settings_file).
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from mdtex.utils.logger import get_logger

logger = get_logger(__name__)


class VaultConfig(BaseModel):
    """Content graph location."""

    root: str = "."
    settings_file: str = ".mdtex/settings.yaml"

    @property
    def settings_path(self) -> Path:
        """Settings file, resolved against the vault root when relative."""
        path = Path(self.settings_file).expanduser()
        return path if path.is_absolute() else Path(self.root).expanduser() / path


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class Config(BaseModel):
    """Main configuration."""

    vault: VaultConfig = Field(default_factory=VaultConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in working directory)

        Returns:
            Config instance

        Environment variables:
            MDTEX_VAULT_ROOT: Vault (content graph) root directory
            MDTEX_SETTINGS_FILE: Settings YAML with conversion profiles
            MDTEX_LOG_LEVEL: Log level
            MDTEX_LOG_TO_FILE: Also write JSON logs to files
            MDTEX_LOG_DIR: Log directory
            MDTEX_HOST: HTTP bind address
            MDTEX_PORT: HTTP port
        """
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None or value == "":
                return default
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            if isinstance(default, int):
                return int(value)
            return value

        return cls(
            vault=VaultConfig(
                root=get_env("MDTEX_VAULT_ROOT", "."),
                settings_file=get_env("MDTEX_SETTINGS_FILE", ".mdtex/settings.yaml"),
            ),
            logging=LoggingConfig(
                level=get_env("MDTEX_LOG_LEVEL", "INFO"),
                log_to_file=get_env("MDTEX_LOG_TO_FILE", False),
                log_dir=get_env("MDTEX_LOG_DIR", "logs"),
                file_rotation=get_env("MDTEX_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("MDTEX_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("MDTEX_LOG_COMPRESSION", "zip"),
                serialize=get_env("MDTEX_LOG_SERIALIZE", True),
            ),
            server=ServerConfig(
                host=get_env("MDTEX_HOST", "0.0.0.0"),
                port=get_env("MDTEX_PORT", 8000),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        return cls(**(data or {}))

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        A malformed YAML file is logged once and ignored.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        config_dict: dict[str, Any] = {}
        if yaml_path and Path(yaml_path).exists():
            try:
                config_dict = cls.from_yaml(yaml_path).model_dump()
            except (yaml.YAMLError, PydanticValidationError, TypeError) as e:
                logger.warning(f"Ignoring malformed config file {yaml_path}: {e}")

        env_config = cls.from_env(env_file)

        # Env sections that differ from defaults override YAML
        final_dict = {**config_dict}
        default = cls()
        if env_config.vault != default.vault:
            final_dict["vault"] = env_config.vault.model_dump()
        if env_config.logging != default.logging:
            final_dict["logging"] = env_config.logging.model_dump()
        if env_config.server != default.server:
            final_dict["server"] = env_config.server.model_dump()

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
