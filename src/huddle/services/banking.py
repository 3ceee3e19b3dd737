"""Account balances backed by a flat file, with transfer notifications.

Accounts are created outside the service (by editing the accounts file); the
service only moves money between existing accounts. Callers are identified by
account id alone, with no session check.
"""
from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from pathlib import Path
from threading import Lock

from huddle.core.errors import InsufficientFunds, InvalidArgument, NotFound, Unavailable
from huddle.core.settings import settings

from .events import TransferSettled
from .fanout import EventFanout, get_event_fanout

logger = logging.getLogger(__name__)


class AccountStore(ABC):
    """Durable storage for the full set of account balances."""

    @abstractmethod
    def load(self) -> dict[str, Decimal]:
        """Return every known account and its balance."""

    @abstractmethod
    def save(self, accounts: dict[str, Decimal]) -> None:
        """Persist ``accounts``; must not return before the data is durable."""


class FlatFileAccountStore(AccountStore):
    """``account_id,balance`` lines in a UTF-8 text file.

    Saves rewrite the whole file through a temporary sibling and an atomic
    rename, so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Decimal]:
        accounts: dict[str, Decimal] = {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Accounts file %s not found; starting empty", self.path)
            return accounts
        except OSError as exc:
            raise Unavailable(f"Cannot read accounts file: {exc}") from exc
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            parts = line.split(",")
            if len(parts) != 2:
                logger.warning("Skipping malformed line %d in %s", lineno, self.path)
                continue
            account_id = parts[0].strip()
            try:
                balance = Decimal(parts[1].strip())
            except InvalidOperation:
                logger.warning("Skipping bad balance on line %d in %s", lineno, self.path)
                continue
            if not account_id or not balance.is_finite() or balance < 0:
                logger.warning("Skipping invalid account on line %d in %s", lineno, self.path)
                continue
            accounts[account_id] = balance
        logger.info("Loaded %d account(s) from %s", len(accounts), self.path)
        return accounts

    def save(self, accounts: dict[str, Decimal]) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                for account_id, balance in accounts.items():
                    handle.write(f"{account_id},{balance}\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class BankingService:
    """Balance queries and money movements with a non-negative invariant.

    Every mutation runs under one lock and is written to the store before it
    is acknowledged. If the write fails the in-memory balances are restored.
    """

    def __init__(self, store: AccountStore, fanout: EventFanout) -> None:
        self.store = store
        self.fanout = fanout
        self._lock = Lock()
        self._accounts = store.load()

    @staticmethod
    def _account_id(account_id: str) -> str:
        account_id = (account_id or "").strip()
        if not account_id:
            raise InvalidArgument("Account id must not be empty")
        return account_id

    @staticmethod
    def _amount(amount: Decimal | int | str) -> Decimal:
        try:
            value = Decimal(str(amount))
        except InvalidOperation as exc:
            raise InvalidArgument("Amount must be a number") from exc
        if not value.is_finite() or value <= 0:
            raise InvalidArgument("Amount must be positive")
        return value

    def _balance_of(self, account_id: str) -> Decimal:
        # Caller holds the lock.
        balance = self._accounts.get(account_id)
        if balance is None:
            raise NotFound(f"Account {account_id} does not exist")
        return balance

    def _commit(self, changes: dict[str, Decimal]) -> None:
        # Caller holds the lock.
        previous = {account_id: self._accounts[account_id] for account_id in changes}
        self._accounts.update(changes)
        try:
            self.store.save(dict(self._accounts))
        except OSError as exc:
            self._accounts.update(previous)
            logger.error("Saving accounts failed: %s", exc, exc_info=True)
            raise Unavailable("Account storage is unavailable") from exc

    def accounts(self) -> list[str]:
        with self._lock:
            return sorted(self._accounts)

    def check_balance(self, account_id: str) -> Decimal:
        account_id = self._account_id(account_id)
        with self._lock:
            return self._balance_of(account_id)

    def deposit(self, account_id: str, amount: Decimal | int | str) -> Decimal:
        """Add ``amount`` and return the new balance."""
        account_id = self._account_id(account_id)
        value = self._amount(amount)
        with self._lock:
            balance = self._balance_of(account_id) + value
            self._commit({account_id: balance})
        logger.info("Deposit of %s into %s", value, account_id)
        return balance

    def withdraw(self, account_id: str, amount: Decimal | int | str) -> Decimal:
        """Remove ``amount`` and return the new balance."""
        account_id = self._account_id(account_id)
        value = self._amount(amount)
        with self._lock:
            balance = self._balance_of(account_id)
            if balance < value:
                logger.warning("Withdrawal of %s from %s refused: insufficient funds", value, account_id)
                raise InsufficientFunds()
            balance -= value
            self._commit({account_id: balance})
        logger.info("Withdrawal of %s from %s", value, account_id)
        return balance

    def transfer(self, from_account: str, to_account: str, amount: Decimal | int | str) -> bool:
        """Move ``amount`` atomically and notify the recipient if subscribed."""
        from_account = self._account_id(from_account)
        to_account = self._account_id(to_account)
        value = self._amount(amount)
        if from_account == to_account:
            raise InvalidArgument("Cannot transfer to the same account")
        with self._lock:
            source = self._balance_of(from_account)
            target = self._balance_of(to_account)
            if source < value:
                logger.warning("Transfer %s -> %s refused: insufficient funds", from_account, to_account)
                raise InsufficientFunds()
            self._commit({from_account: source - value, to_account: target + value})
        logger.info("Transfer of %s from %s to %s", value, from_account, to_account)
        self.fanout.publish(TransferSettled(from_account, to_account, str(value)))
        return True


class _BankingServiceSingleton:
    _instance: BankingService | None = None

    @classmethod
    def get_instance(cls) -> BankingService:
        if cls._instance is None:
            cls._instance = BankingService(
                FlatFileAccountStore(settings.accounts_file), get_event_fanout()
            )
        return cls._instance


def get_banking_service() -> BankingService:
    """Return the process-wide banking service."""
    return _BankingServiceSingleton.get_instance()
