import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class GenerationContext:
    update_type: Literal["major", "minor"] = "major"
    timestamp: datetime = field(default_factory=_utc_now)
    event_data: Dict[str, Any] = field(default_factory=dict)
    extras: Dict[str, Any] = field(default_factory=dict)

    def to_prompt_json(self) -> str:
        return json.dumps(asdict(self), indent=2, default=str)


@dataclass
class GeneratedContent:
    text: str
    output_mode: Literal["text", "layout"] = "text"
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GeneratorValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class OrchestratorResult:
    success: bool
    generator_id: Optional[str] = None
    content: Optional[GeneratedContent] = None
    blocked: bool = False
    block_reason: Optional[Literal["master_circuit_off", "sleep_mode"]] = None
