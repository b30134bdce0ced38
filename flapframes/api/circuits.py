"""
Admin endpoints for inspecting and flipping circuits.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict

from flapframes.api import deps
from flapframes.core.circuit_breaker import CircuitBreakerService, ProviderCircuitStatus
from flapframes.core.circuit_registry import CircuitState, CircuitType
from flapframes.core.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(deps.get_current_admin)])


class CircuitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    circuit_id: str
    circuit_type: CircuitType
    state: CircuitState
    default_state: CircuitState
    description: Optional[str] = None
    failure_count: int
    success_count: int
    failure_threshold: int
    last_failure_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    state_changed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


async def _require_circuit(circuit_breaker: CircuitBreakerService, circuit_id: str):
    circuit = await circuit_breaker.get_circuit_status(circuit_id)
    if circuit is None:
        raise HTTPException(status_code=404, detail=f"Circuit not found: {circuit_id}")
    return circuit


@router.get("", response_model=List[CircuitOut])
async def list_circuits(
    circuit_type: Optional[CircuitType] = Query(default=None, alias="type"),
    circuit_breaker: CircuitBreakerService = Depends(deps.get_circuit_breaker),
):
    if circuit_type is not None:
        return await circuit_breaker.get_circuits_by_type(circuit_type)
    return await circuit_breaker.get_all_circuits()


@router.get("/{circuit_id}", response_model=CircuitOut)
async def get_circuit(
    circuit_id: str,
    circuit_breaker: CircuitBreakerService = Depends(deps.get_circuit_breaker),
):
    return await _require_circuit(circuit_breaker, circuit_id)


@router.get("/{circuit_id}/provider-status", response_model=ProviderCircuitStatus)
async def get_provider_status(
    circuit_id: str,
    circuit_breaker: CircuitBreakerService = Depends(deps.get_circuit_breaker),
):
    circuit = await _require_circuit(circuit_breaker, circuit_id)
    if circuit.circuit_type != CircuitType.PROVIDER.value:
        raise HTTPException(status_code=400, detail=f"Not a provider circuit: {circuit_id}")
    return await circuit_breaker.get_provider_status(circuit_id)


async def _set_state(circuit_breaker: CircuitBreakerService, circuit_id: str, state: CircuitState, admin: str):
    await _require_circuit(circuit_breaker, circuit_id)
    await circuit_breaker.set_circuit_state(circuit_id, state)
    logger.info("circuit changed via api", circuit_id=circuit_id, new_state=state.value, admin=admin)
    return await _require_circuit(circuit_breaker, circuit_id)


@router.post("/{circuit_id}/on", response_model=CircuitOut)
async def turn_on(
    circuit_id: str,
    circuit_breaker: CircuitBreakerService = Depends(deps.get_circuit_breaker),
    admin: str = Depends(deps.get_current_admin),
):
    return await _set_state(circuit_breaker, circuit_id, CircuitState.ON, admin)


@router.post("/{circuit_id}/off", response_model=CircuitOut)
async def turn_off(
    circuit_id: str,
    circuit_breaker: CircuitBreakerService = Depends(deps.get_circuit_breaker),
    admin: str = Depends(deps.get_current_admin),
):
    return await _set_state(circuit_breaker, circuit_id, CircuitState.OFF, admin)


@router.post("/{circuit_id}/reset", response_model=CircuitOut)
async def reset_circuit(
    circuit_id: str,
    circuit_breaker: CircuitBreakerService = Depends(deps.get_circuit_breaker),
    admin: str = Depends(deps.get_current_admin),
):
    """Force a provider circuit back on with zeroed counters."""
    circuit = await _require_circuit(circuit_breaker, circuit_id)
    if circuit.circuit_type != CircuitType.PROVIDER.value:
        raise HTTPException(status_code=400, detail=f"Only provider circuits can be reset: {circuit_id}")
    await circuit_breaker.reset_provider_circuit(circuit_id)
    logger.info("provider circuit reset via api", circuit_id=circuit_id, admin=admin)
    return await _require_circuit(circuit_breaker, circuit_id)
