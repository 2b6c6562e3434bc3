from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from enum import Enum
import time
import uuid


class RequestType(str, Enum):
    """Task categories used for capability matching."""
    CREATION = "creation"
    LOGIC = "logic"
    NARRATIVE = "narrative"
    ANALYSIS = "analysis"


class RequestPriority(str, Enum):
    """Caller-assigned priority. Advisory input to provider scoring only."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TokenUsage(BaseModel):
    """Normalized token usage for a single generation."""
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class GatewayRequest(BaseModel):
    """
    A generation request submitted to the gateway.

    The context is opaque to the gateway; it only takes part in the
    exact cache key.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: RequestType
    prompt: str
    context: Optional[Dict[str, Any]] = None
    priority: RequestPriority = RequestPriority.MEDIUM
    timeout: Optional[float] = Field(None, gt=0, description="Per-request timeout in seconds")
    session_id: str = "default"
    user_id: Optional[str] = None
    timestamp: float = Field(default_factory=time.time)


class GatewayResponse(BaseModel):
    """Response model for a completed request."""
    id: str
    request_id: str
    provider_id: Optional[str] = None
    content: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    cost: float = 0.0
    latency_ms: float = 0.0
    model: str
    finish_reason: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    cached: bool = False
