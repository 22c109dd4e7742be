from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple


@dataclass(frozen=True)
class AIRequest:
    provider: str
    model: str
    prompt: str
    temperature: float
    top_p: float
    max_tokens: int
    images: Tuple[bytes, ...] = field(default=(), repr=False)
    json_output: bool = True
    request_kind: str = "recognition"


@dataclass(frozen=True)
class AIResponse:
    provider: str
    model: str
    raw_text: str
    latency_ms: int
    usage: Optional[Dict[str, Any]] = None


class AIError(Exception):
    def __init__(self, message: str, transient: bool = False):
        super().__init__(message)
        self.transient = transient
