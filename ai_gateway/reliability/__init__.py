"""Reliability layer: provider health and spend control.

This layer handles:
- Periodic health probing with a per-provider state machine
- Daily and monthly cost caps per provider
"""

from .cost_ledger import CostLedger, SpendSummary, estimate_cost
from .health import HealthMonitor, HealthProbeTask, status_for_failures

__all__ = [
    "CostLedger",
    "SpendSummary",
    "estimate_cost",
    "HealthMonitor",
    "HealthProbeTask",
    "status_for_failures",
]
