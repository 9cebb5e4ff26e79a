"""
Check-in / check-out state engine.

Two states: Available and Checked Out. `checkout` is legal only from
Available, `checkin` only from Checked Out. A legal transition is applied as
one UPDATE guarded by the expected prior status, so two overlapping requests
can never both succeed; the loser sees zero rows affected.

Unknown items, wrong-state requests and lost races are ordinary results
(see `CheckInOutOutcome`). Only malformed requests raise.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from db.database import utcnow
from db.history import ACTION_CHECKIN, ACTION_CHECKOUT
from db.item import STATUS_AVAILABLE, STATUS_CHECKED_OUT, InventoryItem
from db.repository import InventoryRepository

logger = logging.getLogger(__name__)

VALID_ACTIONS = (ACTION_CHECKIN, ACTION_CHECKOUT)


class CheckInOutRequestError(ValueError):
    """Missing fields or an unknown action: a caller bug, not a domain outcome."""


class CheckInOutOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ALREADY_CHECKED_OUT = "already_checked_out"
    ALREADY_AVAILABLE = "already_available"
    UPDATE_FAILED = "update_failed"


@dataclass
class CheckInOutResult:
    outcome: CheckInOutOutcome
    message: str
    item: Optional[InventoryItem] = None
    requires_registration: bool = False
    suggested_item_id: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is CheckInOutOutcome.SUCCESS


@dataclass(frozen=True)
class _Transition:
    action: str
    from_status: str
    to_status: str
    verb: str
    past: str
    rejection: CheckInOutOutcome


TRANSITIONS = {
    ACTION_CHECKOUT: _Transition(
        ACTION_CHECKOUT, STATUS_AVAILABLE, STATUS_CHECKED_OUT, "check out", "checked out", CheckInOutOutcome.ALREADY_CHECKED_OUT
    ),
    ACTION_CHECKIN: _Transition(
        ACTION_CHECKIN, STATUS_CHECKED_OUT, STATUS_AVAILABLE, "check in", "checked in", CheckInOutOutcome.ALREADY_AVAILABLE
    ),
}


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class CheckInOutEngine:
    def __init__(self, repository: InventoryRepository):
        self.repository = repository

    async def process(
        self,
        item_id: str,
        serial_number: str,
        action: str,
        actor: Optional[str] = None,
    ) -> CheckInOutResult:
        item_id = _clean(item_id)
        serial_number = _clean(serial_number)
        actor = _clean(actor) or None

        if not item_id or not serial_number or not action:
            raise CheckInOutRequestError("Item ID, Serial Number, and Action are required")
        if action not in VALID_ACTIONS:
            raise CheckInOutRequestError('Invalid action. Must be "checkin" or "checkout"')

        item = await self.repository.find_by_key(item_id)
        if item is None:
            return CheckInOutResult(
                outcome=CheckInOutOutcome.NOT_FOUND,
                message=f'Item ID "{item_id}" not found. Would you like to register this item?',
                requires_registration=True,
                suggested_item_id=item_id,
            )

        transition = TRANSITIONS[action]
        if item.status != transition.from_status:
            logger.info("Rejected %s of %s: item is %s", action, item_id, item.status)
            return CheckInOutResult(
                outcome=transition.rejection,
                message=self._wrong_state_message(item, transition),
                item=item,
            )

        return await self._apply(item, transition, serial_number, actor)

    @staticmethod
    def _wrong_state_message(item: InventoryItem, transition: _Transition) -> str:
        if transition.rejection is CheckInOutOutcome.ALREADY_CHECKED_OUT:
            holder = f" by {item.checked_out_by}" if item.checked_out_by else ""
            return f'Item "{item.item_id}" is already checked out{holder}'
        return f'Item "{item.item_id}" is already available'

    @staticmethod
    def _new_values(transition: _Transition, serial_number: str, actor: Optional[str]) -> dict:
        values = {"status": transition.to_status, "last_action_by": actor}
        if transition.action == ACTION_CHECKOUT:
            values["checked_out_by"] = actor
            values["checked_out_at"] = utcnow()
        else:
            values["checked_out_by"] = None
            values["checked_out_at"] = None
        if serial_number:
            values["serial_number"] = serial_number
        return values

    async def _apply(
        self,
        item: InventoryItem,
        transition: _Transition,
        serial_number: str,
        actor: Optional[str],
    ) -> CheckInOutResult:
        item_id = item.item_id
        try:
            rows = await self.repository.conditional_update(
                item_id, transition.from_status, self._new_values(transition, serial_number, actor)
            )
            if rows == 0:
                await self.repository.rollback()
                logger.warning("Lost update race on %s of %s", transition.action, item_id)
                current = await self.repository.find_by_key(item_id)
                return CheckInOutResult(
                    outcome=CheckInOutOutcome.UPDATE_FAILED,
                    message=f'Failed to {transition.verb} item "{item_id}"',
                    item=current or item,
                )
            await self.repository.append_history(
                item_id, transition.action, user_id=actor, serial_number=serial_number
            )
            await self.repository.commit()
        except Exception:
            await self.repository.rollback()
            raise

        updated = await self.repository.find_by_key(item_id)
        logger.info("Item %s: %s by %s", item_id, transition.action, actor or "anonymous")
        return CheckInOutResult(
            outcome=CheckInOutOutcome.SUCCESS,
            message=f'Item "{item_id}" successfully {transition.past}',
            item=updated,
        )
