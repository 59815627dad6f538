from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "Example Module"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./example_module.db"

    # Security settings
    secret_key: str = "change-me"
    csrf_token_expiry: int = 3600

    # Host directory the installer writes assets and views into
    module_path: Path = Path("modules/example_module")

    model_config = SettingsConfigDict(
        env_prefix="EXAMPLE_MODULE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
