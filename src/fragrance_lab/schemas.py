from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ChatResponse:
    session_id: str
    phase: str
    message: Optional[Dict[str, Any]]
    state: Dict[str, Any]
    error: Optional[str] = None
    error_kind: Optional[str] = None
    violations: List[Dict[str, str]] = field(default_factory=list)
    applied: bool = True
    latency_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "phase": self.phase,
            "message": self.message,
            "state": self.state,
            "error": self.error,
            "error_kind": self.error_kind,
            "violations": self.violations,
            "applied": self.applied,
            "latency_ms": self.latency_ms,
        }
