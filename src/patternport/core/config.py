import base64
import binascii
from pathlib import Path
from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Mode = Literal["file", "api"]

DEVELOPMENT_ENVIRONMENTS = ("development", "local")


class Settings(BaseSettings):
    """Loads application configuration from a .env file and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "PatternPort"
    ENVIRONMENT: Literal["production", "staging", "development", "local"] = "production"

    # "file" keeps theme pattern files in sync on every save,
    # "api" exposes the read-only pattern routes.
    MODE: Optional[Mode] = None

    PATTERNS_DIRNAME: str = "patterns"
    PATTERN_FILE_EXTENSION: str = ".php"

    # DUMMY DATABASE_URL for the Alembic CLI.
    # The running application generates the URL per workspace.
    DATABASE_URL: str = "sqlite:///./dummy_for_alembic_cli.db"

    @model_validator(mode="after")
    def _default_mode(self) -> "Settings":
        if self.MODE is None:
            self.MODE = "file" if self.ENVIRONMENT in DEVELOPMENT_ENVIRONMENTS else "api"
        return self

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT in DEVELOPMENT_ENVIRONMENTS


def get_data_dir_for_workspace(workspace_id: str) -> Path:
    """Creates and returns a dedicated data directory within the specified workspace.
    This ensures isolation per theme. The folder is named .patternport_data.
    """
    workspace_path = Path(workspace_id)
    if not workspace_path.is_dir():
        try:
            workspace_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ValueError(
                f"The specified workspace_id is not a valid directory and could not be created: {workspace_id} - Error: {e}"
            )

    data_dir = workspace_path / ".patternport_data"
    data_dir.mkdir(exist_ok=True)
    return data_dir


def get_database_url_for_workspace(workspace_id: str) -> str:
    """Generates the SQLite DATABASE_URL for a specific workspace."""
    data_dir = get_data_dir_for_workspace(workspace_id)
    db_path = data_dir / "patternport.db"
    return f"sqlite:///{db_path.resolve()}"


def get_patterns_dir_for_workspace(workspace_id: str) -> Path:
    """Returns the theme pattern directory of a workspace. It is not created here."""
    return Path(workspace_id) / settings.PATTERNS_DIRNAME


def encode_workspace_id(workspace_id: str) -> str:
    """Encodes a workspace path to a URL-safe base64 string."""
    return base64.urlsafe_b64encode(workspace_id.encode()).decode()


def decode_workspace_id(encoded_id: str) -> str:
    """Decodes a URL-safe base64 string back to a workspace path."""
    try:
        return base64.urlsafe_b64decode(encoded_id.encode()).decode()
    except (binascii.Error, UnicodeDecodeError):
        raise ValueError("Invalid workspace_id encoding.")


settings = Settings()
