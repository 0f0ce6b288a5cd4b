"""
Banking Session Module

Front-end logic shared by any user interface: tracks the logged-in account,
validates raw text input (empty fields, number parsing, transfer targets)
and turns ledger results into user-facing messages. The ledger itself only
enforces domain rules.
"""

from dataclasses import dataclass
from typing import Optional

from .accounts import Account
from .currency import decimal_from_string, format_amount, has_valid_precision, is_representable
from .ledger import AccountRepository, LoginResult


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a session action plus the message to show the user"""
    ok: bool
    message: str

    def __bool__(self) -> bool:
        return self.ok


class BankingSession:
    """A single user's session over an account repository"""

    def __init__(self, repository: AccountRepository):
        self.repository = repository
        self.account: Optional[Account] = None

    @property
    def logged_in(self) -> bool:
        return self.account is not None

    def login(self, account_id: str, pin: str) -> SessionResult:
        account_id = (account_id or "").strip()
        pin = (pin or "").strip()
        if not account_id or not pin:
            return SessionResult(False, "Please enter both account number and PIN.")

        result, account = self.repository.authenticate(account_id, pin)
        if result is LoginResult.INACTIVE:
            return SessionResult(
                False, "Your account is currently inactive. Please contact bank support."
            )
        if result is not LoginResult.SUCCESS:
            return SessionResult(False, "Invalid Account Number or PIN.")

        self.account = account
        return SessionResult(True, f"Welcome, {account.holder_name}")

    def logout(self) -> SessionResult:
        self.account = None
        return SessionResult(True, "You have been logged out.")

    def balance_text(self) -> str:
        self._require_login()
        return f"Current Balance: {format_amount(self.account.balance)}"

    def deposit(self, raw_amount: str) -> SessionResult:
        self._require_login()
        amount = self._parse_amount(raw_amount)
        if isinstance(amount, SessionResult):
            return amount

        if self.account.deposit(amount):
            return self._success("Deposit successful!")
        return SessionResult(False, "Deposit failed. Account might be inactive.")

    def withdraw(self, raw_amount: str) -> SessionResult:
        self._require_login()
        amount = self._parse_amount(raw_amount)
        if isinstance(amount, SessionResult):
            return amount

        if self.account.withdraw(amount):
            return self._success("Withdrawal successful!")
        return SessionResult(False, "Withdrawal failed. Insufficient funds or account inactive.")

    def transfer(self, raw_amount: str, raw_target: str) -> SessionResult:
        self._require_login()
        amount = self._parse_amount(raw_amount)
        if isinstance(amount, SessionResult):
            return amount

        target_id = (raw_target or "").strip()
        if not target_id:
            return SessionResult(False, "Target account number cannot be empty.")
        if target_id == self.account.id:
            return SessionResult(False, "Cannot transfer to the same account.")
        if target_id not in self.repository:
            return SessionResult(False, "Target account number not found.")

        if self.repository.transfer(self.account.id, target_id, amount):
            return self._success("Transfer successful!")
        return SessionResult(False, "Transfer failed. Check funds, amounts, or account status.")

    def history_report(self) -> str:
        self._require_login()
        lines = [f"Transaction History for Account {self.account.id}", ""]
        history = self.account.history
        if not history:
            lines.append("No transactions yet.")
        lines.extend(str(entry) for entry in history)
        return "\n".join(lines)

    def update_account(self, new_name: str = "", new_pin: str = "",
                       active: Optional[bool] = None) -> SessionResult:
        """Apply non-empty, changed fields; report whether anything changed"""
        self._require_login()
        account = self.account
        changes_made = False

        new_name = (new_name or "").strip()
        if new_name and new_name != account.holder_name:
            account.set_holder_name(new_name)
            changes_made = True

        new_pin = (new_pin or "").strip()
        if new_pin and not account.verify_pin(new_pin):
            account.set_pin(new_pin)
            changes_made = True

        if active is not None and active != account.active:
            account.set_active(active)
            changes_made = True
            if not active:
                return SessionResult(
                    True, "Account set to inactive. No transactions allowed."
                )

        if changes_made:
            return SessionResult(True, "Account details updated successfully!")
        return SessionResult(False, "No changes were made.")

    def _require_login(self) -> None:
        if self.account is None:
            raise RuntimeError("No account is logged in")

    def _parse_amount(self, raw_amount: str):
        try:
            amount = decimal_from_string(raw_amount)
        except ValueError:
            return SessionResult(False, "Invalid amount. Please enter a valid number.")
        if amount <= 0:
            return SessionResult(False, "Amount must be a positive number.")
        currency = self.repository.currency
        if not is_representable(amount, currency):
            return SessionResult(False, "Amount is too large.")
        if not has_valid_precision(amount, currency):
            return SessionResult(
                False, f"Amount must have at most {currency.precision} decimal places."
            )
        return amount

    def _success(self, headline: str) -> SessionResult:
        return SessionResult(
            True, f"{headline} New Balance: {format_amount(self.account.balance)}"
        )
