"""
Static circuit definitions.

Manual circuits are admin kill switches and never change on their own.
Provider circuits are tripped and recovered by the failure/success protocol
in ``flapframes.core.circuit_breaker``.

Polarity: a circuit in state ``off`` is "open" and blocks traffic. SLEEP_MODE
is inverted relative to MASTER: sleep mode being ``on`` is what suppresses
output, so it defaults to ``off``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_RESET_TIMEOUT_MS = 5 * 60 * 1000
DEFAULT_HALF_OPEN_ATTEMPTS = 2

MASTER = "MASTER"
SLEEP_MODE = "SLEEP_MODE"
PROVIDER_OPENAI = "PROVIDER_OPENAI"
PROVIDER_ANTHROPIC = "PROVIDER_ANTHROPIC"


class CircuitType(str, Enum):
    MANUAL = "manual"
    PROVIDER = "provider"


class CircuitState(str, Enum):
    ON = "on"  # Closed breaker, traffic flows
    OFF = "off"  # Open breaker, traffic blocked
    HALF_OPEN = "half_open"  # Probation after a trip


@dataclass(frozen=True)
class CircuitDefinition:
    circuit_id: str
    circuit_type: CircuitType
    default_state: CircuitState
    description: str = ""
    failure_threshold: Optional[int] = None


MANUAL_CIRCUITS: List[CircuitDefinition] = [
    CircuitDefinition(
        circuit_id=MASTER,
        circuit_type=CircuitType.MANUAL,
        default_state=CircuitState.ON,
        description="Global kill switch - blocks all updates when off",
    ),
    CircuitDefinition(
        circuit_id=SLEEP_MODE,
        circuit_type=CircuitType.MANUAL,
        default_state=CircuitState.OFF,
        description="Quiet hours mode - blocks all updates when on",
    ),
]

PROVIDER_CIRCUITS: List[CircuitDefinition] = [
    CircuitDefinition(
        circuit_id=PROVIDER_OPENAI,
        circuit_type=CircuitType.PROVIDER,
        default_state=CircuitState.ON,
        description="Auto-trips on OpenAI API failures",
        failure_threshold=DEFAULT_FAILURE_THRESHOLD,
    ),
    CircuitDefinition(
        circuit_id=PROVIDER_ANTHROPIC,
        circuit_type=CircuitType.PROVIDER,
        default_state=CircuitState.ON,
        description="Auto-trips on Anthropic API failures",
        failure_threshold=DEFAULT_FAILURE_THRESHOLD,
    ),
]

ALL_CIRCUITS: List[CircuitDefinition] = [*MANUAL_CIRCUITS, *PROVIDER_CIRCUITS]

_BY_ID: Dict[str, CircuitDefinition] = {c.circuit_id: c for c in ALL_CIRCUITS}


def get_definition(circuit_id: str) -> Optional[CircuitDefinition]:
    return _BY_ID.get(circuit_id)


def provider_circuit_id(provider: str) -> str:
    """``openai`` -> ``PROVIDER_OPENAI``."""
    return f"PROVIDER_{provider.upper()}"
