from .circuit_breaker_state import CircuitBreakerState

__all__ = [
    "CircuitBreakerState",
]
