"""Hand board mutations over to the automation dispatcher."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from board_automation.application.use_cases.automation.dispatcher import AutomationDispatcher
from board_automation.domain.entities import Card, TriggerType

logger = logging.getLogger(__name__)


def notify_automation(
    dispatcher: AutomationDispatcher | None,
    trigger_type: TriggerType,
    card: Card,
    extra: Mapping[str, Any] | None = None,
) -> None:
    """Submit ``trigger_type`` for ``card`` without waiting for the rules.

    Must only be called after the mutation committed. Submission problems are
    logged and never reach the caller.
    """

    if dispatcher is None:
        return
    context = card.to_context()
    if extra:
        context.update(extra)
    try:
        dispatcher.submit_event(card.board_id, trigger_type, context)
    except Exception:
        logger.exception("Could not submit %s automation for card %s", trigger_type.value, card.id)


__all__ = ["notify_automation"]
