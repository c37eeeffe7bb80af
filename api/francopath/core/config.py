from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Literal
import logging

from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

# Load .env explicitly before creating Settings
# Look for .env in api directory (parent of francopath package)
api_dir = Path(__file__).parent.parent.parent
env_path = api_dir / ".env"

if env_path.exists():
    load_dotenv(env_path, override=True)
    _logger.info(f"Loaded .env file from: {env_path}")
else:
    # Fallback to current directory
    current_env = Path(".env")
    if current_env.exists():
        load_dotenv(current_env, override=True)
        _logger.info(f"Loaded .env file from: {current_env.absolute()}")
    else:
        _logger.debug(f".env file not found at {env_path} or {current_env.absolute()}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///./francopath.db"

    # API
    api_v1_prefix: str = "/api/v1"
    environment: str = "production"
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["*"]

    # Advisory LLM (Anthropic Messages API) used to propose daily deck plans
    anthropic_api_key: str = ""
    advisor_base_url: str = "https://api.anthropic.com/v1/messages"
    advisor_model: str = "claude-3-5-haiku-latest"
    advisor_max_tokens: int = 320
    advisor_timeout_seconds: float = 20.0

    # Deck planning
    plan_timezone: str = "America/Toronto"  # Calendar day boundary for the plan cache
    level_filter_policy: Literal["band", "strict", "open"] = "band"
    performance_sample_size: int = 200  # Most recently updated cards used for accuracy-by-level
    support_accuracy_threshold: int = 70  # Fallback plan adds support level below this accuracy

    # Daily goal / session size
    default_daily_goal: int = 20
    min_daily_goal: int = 5
    max_daily_goal: int = 100
    default_session_limit: int = 25
    unlimited_session_sentinel: int = 999

    # Auto-burn tunables
    auto_burn_min_ease: float = 3.0
    auto_burn_min_interval_days: int = 60
    auto_burn_min_times_correct: int = 4

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")


# Create settings instance
settings = Settings()

# Validate required DATABASE_URL
if not settings.database_url:
    raise ValueError("DATABASE_URL environment variable is required")
