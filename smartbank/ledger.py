"""
Ledger Module

The AccountRepository is the account table: it creates accounts, assigns
identifiers that are never reused, resolves accounts by id and performs the
checks that need the whole table (unknown transfer target, login). It is an
explicit object owned by the caller; there is no module-level account map.
"""

import threading
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .accounts import Account
from .currency import AmountLike, Currency, to_decimal
from .logging_config import get_logger, log_action

logger = get_logger(__name__)

FIRST_ACCOUNT_NUMBER = 10001

DEMO_ACCOUNTS = [
    # id, holder, opening balance, pin, type
    ("12345", "Mostafa Gamal", "1000.00", "1234", "Savings"),
    ("67890", "Mona Hassan", "500.00", "5678", "Current"),
    ("11223", "Abdelrahman Gamal", "2500.00", "9999", "Savings"),
]


class LoginResult(Enum):
    """Outcome of a login attempt"""
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE = "inactive"


class AccountRepository:
    """
    In-memory account table for a single currency.

    Accounts live for the lifetime of the repository; there is no delete.
    """

    def __init__(self, currency: Currency = Currency.EGP):
        self.currency = currency
        self._accounts: Dict[str, Account] = {}
        self._next_number = FIRST_ACCOUNT_NUMBER
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self._accounts

    def __iter__(self) -> Iterator[Account]:
        return iter(self.list_accounts())

    def create_account(
        self,
        holder_name: str,
        initial_balance: AmountLike,
        pin: str,
        account_type: str = "Savings",
        account_id: Optional[str] = None
    ) -> Account:
        """
        Open a new account.

        Args:
            holder_name: Display name of the account holder
            initial_balance: Opening balance, must not be negative
            pin: Login PIN
            account_type: Free-form classification such as "Savings"
            account_id: Explicit identifier; generated when omitted

        Returns:
            The created Account

        Raises:
            ValueError: If the id is already taken or the balance is invalid
        """
        with self._lock:
            if account_id is None:
                account_id = self._allocate_id()
            elif account_id in self._accounts:
                raise ValueError(f"Account {account_id} already exists")

            account = Account(
                account_id=account_id,
                holder_name=holder_name,
                initial_balance=initial_balance,
                pin=pin,
                account_type=account_type,
                currency=self.currency
            )
            self._accounts[account_id] = account

        log_action(logger, "info", "Account created", action="create_account",
                   resource=account_id, extra={"account_type": account_type})
        return account

    def _allocate_id(self) -> str:
        while str(self._next_number) in self._accounts:
            self._next_number += 1
        account_id = str(self._next_number)
        self._next_number += 1
        return account_id

    def get_account(self, account_id: str) -> Account:
        """Return the account or raise KeyError"""
        account = self._accounts.get(account_id)
        if account is None:
            raise KeyError(f"Account {account_id} not found")
        return account

    def find_account(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def list_accounts(self) -> List[Account]:
        """Accounts in creation order"""
        with self._lock:
            return list(self._accounts.values())

    def transfer(self, source_id: str, target_id: Optional[str], amount: AmountLike) -> bool:
        """
        Transfer between two accounts identified by id.

        An unknown target is rejected before any balance changes and the
        failure is recorded on the source account.

        Raises:
            KeyError: If the source account does not exist
        """
        source = self.get_account(source_id)
        # Unparsable amounts raise before anything is recorded
        to_decimal(amount)

        if not target_id:
            return source.transfer(None, amount)

        target = self.find_account(target_id)
        if target is None:
            return source.record_failure("Transfer", f"Target account {target_id} not found.")

        return source.transfer(target, amount)

    def authenticate(self, account_id: str, pin: str) -> Tuple[LoginResult, Optional[Account]]:
        """
        Check credentials.

        Returns:
            (LoginResult, account) where account is only set on SUCCESS
        """
        account = self.find_account(account_id)
        if account is None or not account.verify_pin(pin):
            log_action(logger, "warning", "Login failed", action="login",
                       resource=account_id)
            return LoginResult.INVALID_CREDENTIALS, None

        if not account.active:
            log_action(logger, "warning", "Login refused for inactive account",
                       action="login", resource=account_id)
            return LoginResult.INACTIVE, None

        log_action(logger, "info", "Login succeeded", action="login", resource=account_id)
        return LoginResult.SUCCESS, account

    def seed_demo_accounts(self) -> List[Account]:
        """Create the demo accounts, skipping ids that already exist"""
        created = []
        for account_id, holder, balance, pin, account_type in DEMO_ACCOUNTS:
            if account_id in self._accounts:
                continue
            created.append(self.create_account(
                holder_name=holder,
                initial_balance=balance,
                pin=pin,
                account_type=account_type,
                account_id=account_id
            ))
        return created
