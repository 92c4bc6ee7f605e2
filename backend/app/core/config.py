"""Application configuration."""
import logging
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings."""

    # =========================
    # Health & Review Policy
    # =========================

    # Consecutive failures at which an agent becomes UNHEALTHY
    degraded_threshold: int = 5

    # Results below this confidence are escalated to human review
    confidence_threshold: float = 0.7

    # =========================
    # Timeouts & Batches (seconds)
    # =========================
    agent_timeout_seconds: float = 30.0
    workflow_timeout_seconds: Optional[float] = None
    batch_concurrency: int = 5
    batch_deadline_seconds: float = 110.0  # Leaves headroom under a 120s job limit

    # =========================
    # AI Provider Configuration
    # =========================
    ai_enabled: bool = False
    llm_endpoint: str = "http://localhost:8001/v1"
    llm_model: str = "gpt-4o-mini"

    # Options: "generic", "gpt", "claude", "openai"
    llm_model_type: str = "generic"
    llm_api_key: Optional[str] = None
    llm_timeout_seconds: float = 60.0

    # =========================
    # Outcome History
    # =========================
    # None keeps outcomes in memory only
    outcome_database_url: Optional[str] = None

    # =========================
    # API Configuration
    # =========================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    log_level: str = "INFO"

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS origins to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def ai_configured(self) -> bool:
        """Whether an AI provider should be built at all."""
        return self.ai_enabled and bool(self.llm_endpoint and self.llm_model)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the API and CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


settings = Settings()
