"""Tests for the banking service and its flat-file store."""

from decimal import Decimal

import pytest

from huddle.core.errors import InsufficientFunds, InvalidArgument, NotFound, Unavailable
from huddle.services.banking import BankingService, FlatFileAccountStore


def test_transfer_moves_funds_and_notifies_recipient(banking, fanout, account_callback, accounts_file) -> None:
    recipient = account_callback()
    fanout.accounts.register("B", recipient)

    assert banking.transfer("A", "B", 300) is True

    assert banking.check_balance("A") == Decimal("700")
    assert banking.check_balance("B") == Decimal("800")
    assert recipient.received == [("300", "A")]
    assert FlatFileAccountStore(accounts_file).load() == {
        "A": Decimal("700"),
        "B": Decimal("800"),
    }


def test_transfer_with_insufficient_funds_changes_nothing(banking, fanout, account_callback) -> None:
    recipient = account_callback()
    fanout.accounts.register("A", recipient)

    with pytest.raises(InsufficientFunds):
        banking.transfer("B", "A", 501)

    assert banking.check_balance("B") == Decimal("500")
    assert banking.check_balance("A") == Decimal("1000")
    assert recipient.received == []


@pytest.mark.parametrize("amount", [0, -5, "abc", "NaN"])
def test_amount_must_be_positive_number(banking, amount) -> None:
    with pytest.raises(InvalidArgument):
        banking.deposit("A", amount)


def test_transfer_to_same_account_is_rejected(banking) -> None:
    with pytest.raises(InvalidArgument):
        banking.transfer("A", "A", 1)


def test_unknown_account_is_not_found(banking) -> None:
    with pytest.raises(NotFound):
        banking.check_balance("Z")
    with pytest.raises(NotFound):
        banking.transfer("A", "Z", 1)


def test_deposit_and_withdraw_persist(banking, accounts_file) -> None:
    assert banking.deposit("A", "0.50") == Decimal("1000.50")
    assert banking.withdraw("B", 500) == Decimal("0")

    reloaded = FlatFileAccountStore(accounts_file).load()
    assert reloaded["A"] == Decimal("1000.50")
    assert reloaded["B"] == Decimal("0")


def test_withdraw_cannot_overdraw(banking) -> None:
    with pytest.raises(InsufficientFunds):
        banking.withdraw("B", "500.01")
    assert banking.check_balance("B") == Decimal("500")


def test_failed_save_rolls_back_balances(banking, mocker) -> None:
    mocker.patch.object(banking.store, "save", side_effect=OSError("disk full"))

    with pytest.raises(Unavailable):
        banking.transfer("A", "B", 100)

    assert banking.check_balance("A") == Decimal("1000")
    assert banking.check_balance("B") == Decimal("500")


def test_store_skips_malformed_lines(tmp_path, fanout) -> None:
    path = tmp_path / "accounts.txt"
    path.write_text("A,10\nbroken\nB,not-a-number\nC,-1\n\nD, 2.5 \n", encoding="utf-8")

    service = BankingService(FlatFileAccountStore(path), fanout)

    assert service.accounts() == ["A", "D"]
    assert service.check_balance("D") == Decimal("2.5")


def test_missing_file_starts_empty(tmp_path, fanout) -> None:
    service = BankingService(FlatFileAccountStore(tmp_path / "absent.txt"), fanout)
    assert service.accounts() == []
