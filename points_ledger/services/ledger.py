from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Union

from ..core.errors import ValidationError
from ..models import SetBalanceResult
from .repository import LedgerRepository

if TYPE_CHECKING:
    from ..core.db import StorageEngine


logger = logging.getLogger(__name__)

Identifier = Union[str, int]

DEFAULT_SET_REASON = "Points manually set"


def _require_int(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    return value


class LedgerService:
    """The only writer of balances.

    Each mutation reads the current balance, writes the new one and appends
    the matching history entry inside one write unit of the storage engine.
    The new balance is returned only once that unit has committed.
    """

    def __init__(self, storage: StorageEngine) -> None:
        self.storage = storage

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def credit(
        self,
        account_id: Identifier,
        display_name: str,
        amount: int,
        actor_id: Identifier,
        actor_name: str,
        reason: Optional[str] = None,
    ) -> int:
        if _require_int(amount, "amount") <= 0:
            raise ValidationError("Amount must be positive")
        new_balance = self._apply_delta(
            account_id, display_name, amount, actor_id, actor_name, reason
        )
        logger.info(
            "points.credit",
            extra={
                "account_id": str(account_id),
                "actor_id": str(actor_id),
                "amount": amount,
                "balance": new_balance,
            },
        )
        return new_balance

    def debit(
        self,
        account_id: Identifier,
        display_name: str,
        amount: int,
        actor_id: Identifier,
        actor_name: str,
        reason: Optional[str] = None,
    ) -> int:
        # No floor: staff corrections may leave a balance negative.
        if _require_int(amount, "amount") <= 0:
            raise ValidationError("Amount must be positive")
        new_balance = self._apply_delta(
            account_id, display_name, -amount, actor_id, actor_name, reason
        )
        logger.info(
            "points.debit",
            extra={
                "account_id": str(account_id),
                "actor_id": str(actor_id),
                "amount": amount,
                "balance": new_balance,
            },
        )
        return new_balance

    def set_balance(
        self,
        account_id: Identifier,
        display_name: str,
        target_amount: int,
        actor_id: Identifier,
        actor_name: str,
        reason: Optional[str] = None,
    ) -> SetBalanceResult:
        if _require_int(target_amount, "target_amount") < 0:
            raise ValidationError("Amount cannot be negative")
        user_id, staff_id = str(account_id), str(actor_id)

        def work(repository: LedgerRepository) -> SetBalanceResult:
            old_balance = repository.read_balance(user_id)
            repository.upsert_account(user_id, display_name, target_amount)
            # A zero delta is still recorded as an audit of the staff action.
            repository.append_history(
                user_id=user_id,
                staff_id=staff_id,
                staff_username=actor_name,
                amount=target_amount - old_balance,
                reason=(
                    f"{reason or DEFAULT_SET_REASON} "
                    f"(Set from {old_balance} to {target_amount})"
                ),
            )
            return SetBalanceResult(old_balance=old_balance, new_balance=target_amount)

        result = self.storage.run_in_transaction(work)
        logger.info(
            "points.set",
            extra={
                "account_id": user_id,
                "actor_id": staff_id,
                "old_balance": result.old_balance,
                "balance": result.new_balance,
            },
        )
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _apply_delta(
        self,
        account_id: Identifier,
        display_name: str,
        delta: int,
        actor_id: Identifier,
        actor_name: str,
        reason: Optional[str],
    ) -> int:
        user_id, staff_id = str(account_id), str(actor_id)

        def work(repository: LedgerRepository) -> int:
            new_balance = repository.read_balance(user_id) + delta
            repository.upsert_account(user_id, display_name, new_balance)
            repository.append_history(
                user_id=user_id,
                staff_id=staff_id,
                staff_username=actor_name,
                amount=delta,
                reason=reason,
            )
            return new_balance

        return self.storage.run_in_transaction(work)
