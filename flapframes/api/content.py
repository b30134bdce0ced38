from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from flapframes.ai.errors import AllProvidersFailedError, MissingAPIKeyError
from flapframes.api import deps
from flapframes.content.generators import UnknownGeneratorError
from flapframes.content.orchestrator import FrameOrchestrator
from flapframes.core.circuit_breaker import CircuitBreakerService

router = APIRouter(dependencies=[Depends(deps.get_current_admin)])


class GenerateResponse(BaseModel):
    generator_id: str
    text: str
    output_mode: str
    metadata: Dict[str, Any]


class BlockedResponse(BaseModel):
    blocked: bool = True
    block_reason: Optional[str] = None


@router.post(
    "/generate/{generator_id}",
    response_model=GenerateResponse,
    responses={409: {"model": BlockedResponse}},
)
async def generate(
    generator_id: str,
    circuit_breaker: CircuitBreakerService = Depends(deps.get_circuit_breaker),
    generator_factory=Depends(deps.get_generator_factory),
):
    try:
        generator = generator_factory(generator_id, circuit_breaker=circuit_breaker)
    except UnknownGeneratorError:
        raise HTTPException(status_code=404, detail=f"Unknown generator: {generator_id}")
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))

    try:
        result = await FrameOrchestrator(circuit_breaker).run(generator)
    except AllProvidersFailedError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except MissingAPIKeyError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if result.blocked:
        raise HTTPException(
            status_code=409,
            detail={"blocked": True, "block_reason": result.block_reason},
        )

    return GenerateResponse(
        generator_id=generator_id,
        text=result.content.text,
        output_mode=result.content.output_mode,
        metadata=result.content.metadata,
    )
