from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Values already set in the environment win over the .env file
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {
        k: v for k, v in file_env.items() if k not in os.environ and v is not None
    }
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FIELDMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Field Configuration
    max_grid_width: int = Field(default=512, description="Max allowed grid width")
    max_grid_height: int = Field(default=512, description="Max allowed grid height")
    default_capping_ratio: float = Field(
        default=2.0, description="Capping radius ratio used when a request omits it"
    )
    default_threshold: float = Field(
        default=1.0, description="Contour threshold used when a request omits it"
    )


# Instantiate singleton settings object
settings = Settings()
