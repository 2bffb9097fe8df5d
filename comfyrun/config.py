"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./comfyrun.db"

    # ComfyDeploy
    COMFY_DEPLOY_API_KEY: str = ""
    COMFY_DEPLOY_WF_DEPLOYMENT_ID: str = ""
    COMFY_DEPLOY_API_URL: str = "https://www.comfydeploy.com/api/run"
    PUBLIC_BASE_URL: str = ""  # Webhook host; falls back to the request host

    # Prompt optimizer (Make.com scenario webhook)
    PROMPT_OPTIMIZER_URL: str = ""
    OPTIMIZER_TIMEOUT_SECONDS: float = 30.0

    # Submission
    SUBMIT_TIMEOUT_SECONDS: float = 30.0
    SUBMIT_MAX_RETRIES: int = 3
    SUBMIT_BACKOFF_SECONDS: float = 5.0

    # Status polling (client side)
    STATUS_BASE_URL: str = "http://localhost:8000"
    STATUS_POLL_INTERVAL: float = 5.0
    STATUS_REQUEST_TIMEOUT_SECONDS: float = 10.0

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()
