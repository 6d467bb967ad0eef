"""Board automation engine: ordering, rule evaluation, dispatch and scheduling."""

from .actions import ActionExecutor, ExecutionReport
from .conditions import ConditionEvaluator
from .dispatcher import AutomationDispatcher, DispatchReport
from .engine import AutomationEngine, build_automation_engine
from .ordering import ColumnLocks, OrderingManager
from .scheduler import ScanReport, SchedulerState, TimeBasedScheduler, build_card_query

__all__ = [
    "ActionExecutor",
    "AutomationDispatcher",
    "AutomationEngine",
    "ColumnLocks",
    "ConditionEvaluator",
    "DispatchReport",
    "ExecutionReport",
    "OrderingManager",
    "ScanReport",
    "SchedulerState",
    "TimeBasedScheduler",
    "build_automation_engine",
    "build_card_query",
]
