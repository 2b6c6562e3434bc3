"""Provider health records produced by the health monitor."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


class HealthStatus(str, Enum):
    """Provider health states."""
    UNKNOWN = "unknown"        # Never probed
    HEALTHY = "healthy"
    DEGRADED = "degraded"      # 1-3 consecutive failed probes
    UNHEALTHY = "unhealthy"    # More than 3 consecutive failed probes


@dataclass
class ProviderHealth:
    """Latest probe outcome for one provider."""
    provider_id: str
    model: str = ""
    status: HealthStatus = HealthStatus.UNKNOWN
    latency_ms: float = 0.0
    consecutive_failures: int = 0
    total_probes: int = 0
    failed_probes: int = 0
    last_checked: Optional[float] = None
    last_error: Optional[str] = None

    @property
    def error_rate(self) -> float:
        if self.total_probes == 0:
            return 0.0
        return self.failed_probes / self.total_probes

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["error_rate"] = self.error_rate
        return data
