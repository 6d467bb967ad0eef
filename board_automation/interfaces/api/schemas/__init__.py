from .automation import (
    AutomationActionPayload,
    AutomationRuleCreate,
    AutomationRuleRead,
    AutomationRuleUpdate,
    ScanReportRead,
    SchedulerStatusRead,
)
from .card import CardCreate, CardMove, CardRead

__all__ = [
    "AutomationActionPayload",
    "AutomationRuleCreate",
    "AutomationRuleRead",
    "AutomationRuleUpdate",
    "CardCreate",
    "CardMove",
    "CardRead",
    "ScanReportRead",
    "SchedulerStatusRead",
]
