from pathlib import Path
from typing import Dict, List

from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    PROJECT_NAME: str = "Flap Frames"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    DATABASE_URL: str = "sqlite:///./flapframes.db"

    SECRET_KEY: str = ""  # Must be set via environment variable
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    ADMIN_EMAILS: str = ""  # Comma-separated JWT subjects allowed on admin routes

    # AI providers
    OPENAI_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    PREFERRED_AI_PROVIDER: str = "openai"

    # Circuit breaker tuning
    CIRCUIT_FAILURE_THRESHOLD: int = 5
    CIRCUIT_RESET_TIMEOUT_SECONDS: int = 300  # 5 minutes in OPEN before probing
    CIRCUIT_HALF_OPEN_ATTEMPTS: int = 2

    # Scheduler
    RUN_SCHEDULER: bool = True
    GENERATION_INTERVAL_MINUTES: int = 15
    CIRCUIT_PROBE_INTERVAL_SECONDS: int = 60

    # Observability
    SENTRY_DSN: str = ""

    PROMPTS_DIR: str = str(PACKAGE_DIR / "prompts")

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")

    def admin_emails(self) -> List[str]:
        return [email.strip().lower() for email in self.ADMIN_EMAILS.split(",") if email.strip()]

    def api_keys(self) -> Dict[str, str]:
        """Provider name -> API key for every provider with a key configured."""
        keys = {"openai": self.OPENAI_API_KEY, "anthropic": self.ANTHROPIC_API_KEY}
        return {provider: key for provider, key in keys.items() if key}

    def available_providers(self) -> List[str]:
        return list(self.api_keys().keys())


settings = Settings()
