"""Configuration from .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4.1"  # Chat + mission generation
    OPENAI_FAST_MODEL: str = "gpt-4.1-mini"  # Thesis drafts + slides
    OPENAI_IMAGE_MODEL: str = "gpt-image-1"
    OPENAI_IMAGE_SIZE: str = "1536x1024"  # Wide frames for the Idea Train
    OPENAI_TIMEOUT: float = 60.0
    MISSION_TEMPERATURE: float = 0.9

    # Mentor replies shorter than this never get illustrations.
    ILLUSTRATION_MIN_CHARS: int = 50
    ILLUSTRATION_EXCERPT_CHARS: int = 300

    STORAGE_PATH: str = "data/eduspace_storage.json"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


settings = Settings()
