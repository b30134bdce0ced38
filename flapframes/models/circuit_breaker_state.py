"""
Circuit breaker state persistence model.

One row per circuit id. Rows are created from the static registry at startup
and only ever updated afterwards, so manual kill switches and tripped
provider circuits survive deploys/restarts.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CircuitBreakerState(SQLModel, table=True):
    """Persisted circuit breaker state."""

    __tablename__ = "circuit_breaker_state"

    id: Optional[int] = Field(default=None, primary_key=True)
    circuit_id: str = Field(unique=True, index=True, max_length=50)  # e.g. "MASTER", "PROVIDER_OPENAI"
    circuit_type: str = Field(index=True, max_length=20)  # "manual" | "provider"
    state: str  # "on" | "off" | "half_open"
    default_state: str
    description: Optional[str] = Field(default=None)

    failure_count: int = Field(default=0)
    success_count: int = Field(default=0)  # Consecutive successes while half_open
    failure_threshold: int = Field(default=5)

    last_failure_at: Optional[datetime] = Field(default=None)
    last_success_at: Optional[datetime] = Field(default=None)
    state_changed_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
