"""
Account Module

A bank account holds its balance, status, identity and PIN, and enforces the
deposit / withdraw / transfer rules. Every mutating call, successful or not,
appends exactly one timestamped entry to the account's append-only history.

Rule violations (inactive account, non-positive amount, insufficient funds,
bad transfer target) are never raised: the operation returns False and the
reason is recorded in the history. Only syntactically invalid amounts raise
ValueError.
"""

import hmac
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from .currency import (
    AmountLike, Currency, Money, format_amount, has_valid_precision, is_representable,
    to_decimal
)
from .logging_config import get_logger, log_action

logger = get_logger(__name__)

HISTORY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryEntry:
    """Immutable timestamped line in an account's history"""
    timestamp: datetime
    message: str

    def __str__(self) -> str:
        return f"{self.timestamp.strftime(HISTORY_TIME_FORMAT)} - {self.message}"


class Account:
    """
    In-memory bank account.

    The balance is only changed by deposit, withdraw and transfer. Each
    account owns a re-entrant lock; operations touching two accounts take
    both locks in ascending id order.
    """

    def __init__(
        self,
        account_id: str,
        holder_name: str,
        initial_balance: AmountLike,
        pin: str,
        account_type: str = "Savings",
        currency: Currency = Currency.EGP,
        clock: Callable[[], datetime] = _utc_now
    ):
        if not account_id:
            raise ValueError("Account id must be a non-empty string")

        opening = Money(to_decimal(initial_balance), currency)
        if opening.is_negative():
            raise ValueError("Initial balance cannot be negative")

        self._id = account_id
        self.holder_name = holder_name
        self._pin = pin
        self.account_type = account_type
        self._currency = currency
        self._balance = opening
        self._active = True
        self._history: List[HistoryEntry] = []
        self._clock = clock
        self._lock = threading.RLock()

        self._record(f"Account created with initial balance: {format_amount(opening)}")

    def __repr__(self) -> str:
        return (f"Account(id={self._id!r}, holder_name={self.holder_name!r}, "
                f"balance={format_amount(self.balance)!r}, active={self._active})")

    # Read-only state

    @property
    def id(self) -> str:
        return self._id

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def balance(self) -> Money:
        with self._lock:
            return self._balance

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pin(self) -> str:
        return self._pin

    @property
    def history(self) -> Tuple[HistoryEntry, ...]:
        """Snapshot of the history in insertion order"""
        with self._lock:
            return tuple(self._history)

    # Identity and status

    def set_holder_name(self, name: str) -> None:
        self.holder_name = name

    def set_pin(self, pin: str) -> None:
        self._pin = pin

    def verify_pin(self, pin: str) -> bool:
        """Constant-time comparison against the in-memory PIN"""
        return hmac.compare_digest(self._pin.encode('utf-8'), pin.encode('utf-8'))

    def set_active(self, active: bool) -> None:
        with self._lock:
            self._active = bool(active)
            self._record(f"Account status changed to {'Active' if active else 'Inactive'}")
        log_action(logger, "info", "Account status changed",
                   action="set_active", resource=self._id,
                   extra={"active": bool(active)})

    # Money movement

    def deposit(self, amount: AmountLike) -> bool:
        """
        Credit the account.

        Returns:
            True on success, False when the account is inactive or the amount
            is not a positive value in whole minor units.
        """
        value = to_decimal(amount)
        with self._lock:
            reason = self._rejection_reason(value)
            if reason:
                return self._reject("Deposit", reason)
            if not is_representable(self._balance.amount + value, self._currency):
                return self._reject("Deposit", "Resulting balance exceeds the supported range.")

            credited = Money(value, self._currency)
            self._balance = self._balance + credited
            self._record(f"Deposited: {format_amount(credited)}. "
                         f"New balance: {format_amount(self._balance)}")
            balance = self._balance

        log_action(logger, "info", "Deposit posted", action="deposit",
                   resource=self._id,
                   extra={"amount": str(credited.amount), "balance": str(balance.amount)})
        return True

    def withdraw(self, amount: AmountLike) -> bool:
        """
        Debit the account.

        Returns:
            True on success, False when the account is inactive, the amount
            is invalid, or the balance is insufficient.
        """
        value = to_decimal(amount)
        with self._lock:
            reason = self._rejection_reason(value)
            if reason:
                return self._reject("Withdrawal", reason)

            debited = Money(value, self._currency)
            if debited > self._balance:
                return self._reject(
                    "Withdrawal",
                    f"Insufficient funds. Attempted: {format_amount(debited)}, "
                    f"Current: {format_amount(self._balance)}"
                )

            self._balance = self._balance - debited
            self._record(f"Withdrew: {format_amount(debited)}. "
                         f"New balance: {format_amount(self._balance)}")
            balance = self._balance

        log_action(logger, "info", "Withdrawal posted", action="withdraw",
                   resource=self._id,
                   extra={"amount": str(debited.amount), "balance": str(balance.amount)})
        return True

    def transfer(self, target: Optional['Account'], amount: AmountLike) -> bool:
        """
        Move funds to another account as a single critical section.

        Both balances change together or not at all. Rejections are recorded
        on this (source) account only; the target's history is untouched.
        """
        value = to_decimal(amount)

        if target is None or target is self or target.id == self._id:
            with self._lock:
                if not self._active:
                    return self._reject("Transfer", "Source account is inactive.")
                if target is None:
                    return self._reject("Transfer", "Target account not specified.")
                return self._reject("Transfer", "Cannot transfer to the same account.")

        if target.currency != self._currency:
            raise ValueError(
                f"Cannot transfer between {self._currency.code} and {target.currency.code} accounts"
            )

        first, second = sorted((self, target), key=lambda account: account.id)
        with first._lock, second._lock:
            if not self._active:
                return self._reject("Transfer", "Source account is inactive.")
            if not target._active:
                return self._reject("Transfer", f"Target account {target.id} is inactive.")

            reason = self._rejection_reason(value, check_active=False)
            if reason:
                return self._reject("Transfer", reason)

            moved = Money(value, self._currency)
            if moved > self._balance:
                return self._reject(
                    "Transfer",
                    f"Insufficient funds for transfer. Attempted: {format_amount(moved)}, "
                    f"Current: {format_amount(self._balance)}"
                )
            if not is_representable(target._balance.amount + value, self._currency):
                return self._reject(
                    "Transfer", f"Balance of account {target.id} would exceed the supported range."
                )

            self._balance = self._balance - moved
            target._balance = target._balance + moved

            self._record(f"Transferred: {format_amount(moved)} to account {target.id}. "
                         f"New balance: {format_amount(self._balance)}")
            target._record(f"Received: {format_amount(moved)} from account {self._id}. "
                           f"New balance: {format_amount(target._balance)}")

        log_action(logger, "info", "Transfer posted", action="transfer",
                   resource=self._id,
                   extra={"target": target.id, "amount": str(moved.amount)})
        return True

    def record_failure(self, operation: str, reason: str) -> bool:
        """Append a failure entry for a rejection decided by the caller"""
        with self._lock:
            return self._reject(operation, reason)

    # Internals

    def _rejection_reason(self, value: Decimal, check_active: bool = True) -> Optional[str]:
        if check_active and not self._active:
            return "Account is inactive."
        if value <= 0:
            return "Amount must be positive."
        if not is_representable(value, self._currency):
            return "Amount exceeds the supported range."
        if not has_valid_precision(value, self._currency):
            return f"Amount must have at most {self._currency.precision} decimal places."
        return None

    def _reject(self, operation: str, reason: str) -> bool:
        self._record(f"Failed {operation}: {reason}")
        log_action(logger, "warning", f"{operation} rejected: {reason}",
                   action=operation.lower(), resource=self._id)
        return False

    def _record(self, message: str) -> None:
        self._history.append(HistoryEntry(timestamp=self._clock(), message=message))
