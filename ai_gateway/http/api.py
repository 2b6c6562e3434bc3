"""FastAPI HTTP endpoints for the AI gateway.

This module exposes a gateway instance over REST.
It requires FastAPI to be installed (via the 'http' extra).
"""

import asyncio
from typing import Any, Dict, Optional

try:
    from fastapi import APIRouter, HTTPException
except ImportError:
    raise ImportError(
        "FastAPI is required for HTTP endpoints. "
        "Please install with: pip install ai-gateway[http]"
    )
from pydantic import BaseModel, Field

from ..api.gateway import Gateway
from ..errors import CostLimitExceeded, NoHealthyProvider
from ..models.requests import GatewayRequest, GatewayResponse, RequestPriority, RequestType
from ..providers.base import ProviderInvocationError


class SubmitRequest(BaseModel):
    """Body of ``POST /requests``; the gateway assigns id and timestamp."""
    type: RequestType
    prompt: str = Field(..., min_length=1)
    context: Optional[Dict[str, Any]] = None
    priority: RequestPriority = RequestPriority.MEDIUM
    timeout: Optional[float] = Field(None, gt=0)
    session_id: str = "default"
    user_id: Optional[str] = None


def create_router(gateway: Gateway) -> APIRouter:
    """Build an ``APIRouter`` bound to ``gateway``."""
    router = APIRouter()

    @router.post("/requests", response_model=GatewayResponse)
    async def submit_request(body: SubmitRequest):
        """Serve one request through the gateway."""
        request = GatewayRequest(**body.model_dump())
        try:
            return await gateway.send_request(request)
        except NoHealthyProvider as e:
            raise HTTPException(status_code=503, detail=str(e))
        except CostLimitExceeded as e:
            raise HTTPException(status_code=402, detail=str(e))
        except ProviderInvocationError as e:
            raise HTTPException(status_code=e.status_code or 502, detail=str(e))
        except asyncio.TimeoutError:
            raise HTTPException(status_code=504, detail="Provider call timed out")

    @router.get("/stats")
    async def stats():
        """Gateway and cache counters."""
        return gateway.get_stats()

    @router.get("/status")
    async def status():
        """Registered providers, their health, in-flight requests and spend."""
        return gateway.get_service_status()

    return router
