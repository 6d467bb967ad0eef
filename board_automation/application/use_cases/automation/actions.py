"""Execute the actions of a matched automation rule."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from board_automation.domain.entities import (
    Action,
    ActionType,
    RuleAction,
    UnknownAction,
    parse_actions,
)
from board_automation.domain.exceptions import NotFoundError
from board_automation.infrastructure.repositories import CardRepository, TagRepository
from board_automation.utils import utc_now

from .ordering import OrderingManager

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    """Outcome of one :meth:`ActionExecutor.execute` call, for logging and tests."""

    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ActionExecutor:
    """Apply rule actions to the card described by a context.

    Actions run strictly in order and each one commits on its own. A failing
    action is logged and the next one is still attempted, so a rule may end
    up partially applied.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        ordering: OrderingManager,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._ordering = ordering
        self._clock = clock

    def execute(
        self,
        actions: Sequence[Action] | str | list[Any] | None,
        context: Mapping[str, Any],
        *,
        now: datetime | None = None,
    ) -> ExecutionReport:
        """Run ``actions`` in order against the card in ``context``.

        ``now`` is the timestamp recorded by archival and column moves (defaults
        to the clock).
        """

        if actions is None or isinstance(actions, str) or not all(
            isinstance(action, (RuleAction, UnknownAction)) for action in actions
        ):
            actions = parse_actions(actions)

        report = ExecutionReport()
        for index, action in enumerate(actions):
            label = f"{index}:{_type_name(action)}"
            try:
                applied = self._apply(action, context, now)
            except NotFoundError as exc:
                logger.warning("Automation action %s failed: %s", label, exc)
                report.failed.append(label)
                continue
            except Exception:
                logger.exception(
                    "Automation action %s failed for card %s", label, context.get("cardId")
                )
                report.failed.append(label)
                continue
            (report.executed if applied else report.skipped).append(label)
        return report

    def _apply(self, action: Action, context: Mapping[str, Any], now: datetime | None) -> bool:
        if isinstance(action, UnknownAction):
            logger.warning("Unknown automation action type %r; skipping", action.type)
            return False

        card_id = context.get("cardId")
        if not card_id:
            logger.debug("Automation action %s skipped: context has no cardId", action.type.value)
            return False
        board_id = context.get("boardId")

        if action.type is ActionType.ARCHIVE_CARD:
            self._ordering.archive(card_id, now or self._clock())
            return True

        if not action.value:
            logger.warning("Automation action %s skipped: missing value", action.type.value)
            return False

        if action.type is ActionType.MOVE_CARD:
            self._ordering.relocate(card_id, action.value, board_id=board_id, when=now or self._clock())
        elif action.type is ActionType.ASSIGN_USER:
            self._assign_user(card_id, action.value, board_id)
        elif action.type is ActionType.ADD_TAG:
            self._add_tag(card_id, action.value, board_id)
        else:
            logger.warning("Automation action %s has no handler; skipping", action.type.value)
            return False
        return True

    def _assign_user(self, card_id: str, user_id: str, board_id: str | None) -> None:
        # Replaces the whole assignee set; appending is a possible future mode.
        with self._session_factory() as session, session.begin():
            cards = CardRepository(session)
            card = cards.get(card_id)
            if card is None or (board_id is not None and card.board_id != board_id):
                raise NotFoundError(f"Card {card_id} not found")
            cards.replace_assignees(card_id, [user_id])
        logger.info("Automation assigned user %s to card %s", user_id, card_id)

    def _add_tag(self, card_id: str, tag_id: str, board_id: str | None) -> None:
        try:
            with self._session_factory() as session, session.begin():
                cards = CardRepository(session)
                card = cards.get(card_id)
                if card is None or (board_id is not None and card.board_id != board_id):
                    raise NotFoundError(f"Card {card_id} not found")
                tag = TagRepository(session).get(tag_id)
                if tag is None or tag.board_id != card.board_id:
                    raise NotFoundError(f"Tag {tag_id} not found in board {card.board_id}")
                added = cards.add_tag(card_id, tag_id)
        except IntegrityError:
            added = False
        if added:
            logger.info("Automation tagged card %s with %s", card_id, tag_id)
        else:
            logger.debug("Tag %s already linked to card %s", tag_id, card_id)


def _type_name(action: Action) -> str:
    if isinstance(action, RuleAction):
        return action.type.value
    return action.type


__all__ = ["ActionExecutor", "ExecutionReport"]
