import os
from pathlib import Path
from typing import List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Calculate the absolute path to the .env file.
# It finds this file's location and navigates up to the project root.
_config_dir = os.path.dirname(os.path.abspath(__file__))
_backend_dir = os.path.dirname(os.path.dirname(_config_dir))
_project_root = os.path.dirname(_backend_dir)
_dotenv_path = os.path.join(_project_root, '.env')


class Settings(BaseSettings):
    # Every release gets its own subfolder inside this directory
    RELEASES_ROOT: Path = Path.home() / "Documents" / "Music Agent" / "Releases"

    # Audio validation
    MAX_AUDIO_DURATION_SECONDS: float = 3600

    # Storage status warns below this many free gigabytes
    LOW_DISK_SPACE_GB: float = 10

    # Server settings
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    PORT: int = 3001

    model_config = SettingsConfigDict(
        env_file=_dotenv_path,
        env_file_encoding='utf-8',
        extra='ignore'
    )

    @field_validator("RELEASES_ROOT")
    @classmethod
    def expand_releases_root(cls, value: Path) -> Path:
        return Path(value).expanduser()


settings = Settings()
