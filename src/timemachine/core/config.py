"""Configuration management for the History Time Machine.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the TIMEMACHINE_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (TIMEMACHINE_* prefix)
2. .env file in the project root
3. Default values defined in TimeMachineConfig

Example .env file:
    TIMEMACHINE_DATA_DIR=data
    TIMEMACHINE_REQUEST_TIMEOUT=90
    TIMEMACHINE_SERVER_PORT=8080
    TIMEMACHINE_LOG_LEVEL=DEBUG

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The API layer reads it; the core components take their settings as explicit
arguments so tests can construct them without touching the environment.

Usage Example
-------------
    from timemachine.core.config import config

    print(config.secret_store_path)
    print(config.gemini_base_url)

Backend Endpoints
-----------------
Each image backend family has its own base URL:
- pollinations_base_url: direct-URL backend (no credential)
- gemini_base_url: multimodal backend (``x-goog-api-key`` header)
- openai_base_url: image-specific backend (bearer token)

See Also
--------
- TimeMachineConfig: Full configuration class documentation
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TimeMachineConfig(BaseSettings):
    """Main configuration for the History Time Machine.

    Values are loaded from environment variables with the TIMEMACHINE_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Storage:
        data_dir : Path
            Directory for local application data
        secret_store_path : Path | None
            SQLite file holding stored credentials. Defaults to
            ``data_dir / "credentials.db"`` when unset.

    Backends:
        pollinations_base_url : str
            Base URL of the direct-URL image backend
        gemini_base_url : str
            Base URL (including API version) of the multimodal backend
        openai_base_url : str
            Base URL of the image-specific backend
        wikimedia_base_url : str
            Base URL of the "on this day" feed

    Generation:
        direct_url_width : int
            Width requested from the direct-URL backend
        direct_url_height : int
            Height requested from the direct-URL backend
        openai_image_size : str
            Size string sent to the image-specific backend
        request_timeout : float
            Transport timeout in seconds for every outbound request

    Server:
        server_host : str
            Bind address for the uvicorn server
        server_port : int
            Port for the uvicorn server (1024-65535)
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Root logging level used by the CLI entry point

    Notes
    -----
    - The data directory is created automatically if it doesn't exist
    - The secret store is preference-grade persistence, not a vault

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = TimeMachineConfig(
        ...     data_dir="/tmp/timemachine",
        ...     request_timeout=30,
        ... )
        >>> custom_config.secret_store_path
        PosixPath('/tmp/timemachine/credentials.db')
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TIMEMACHINE_",
        case_sensitive=False,
    )

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for local application data",
    )
    secret_store_path: Path | None = Field(
        default=None,
        description="SQLite file for stored credentials (defaults to data_dir/credentials.db)",
    )

    # Backend endpoints
    pollinations_base_url: str = Field(
        default="https://image.pollinations.ai",
        description="Base URL of the direct-URL image backend",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the multimodal backend (image models require v1beta)",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the image-specific backend",
    )
    wikimedia_base_url: str = Field(
        default="https://api.wikimedia.org",
        description="Base URL of the Wikimedia feed API",
    )

    # Generation settings
    direct_url_width: int = Field(default=1024, ge=64, le=2048)
    direct_url_height: int = Field(default=768, ge=64, le=2048)
    openai_image_size: str = Field(
        default="1024x1024",
        description="Size requested from the image-specific backend",
    )
    request_timeout: float = Field(
        default=120.0,
        description="Transport timeout in seconds (image generation can be slow)",
        gt=0,
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level for the CLI entry point",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        if self.secret_store_path is None:
            self.secret_store_path = self.data_dir / "credentials.db"


# Global configuration instance
# Loads values from environment variables (TIMEMACHINE_* prefix) and .env file.
config = TimeMachineConfig()
