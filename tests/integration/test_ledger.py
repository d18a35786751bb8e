"""
Integration tests for the ledger and the transaction log.

Covers:
- Credit, debit and bucket transfer primitives
- Non-negative balances
- Log entry recording, settlement and queries
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.models.enums import BalanceBucket, TransactionStatus, TransactionType
from app.services.ledger_service import LedgerService
from app.services.transaction_service import TransactionLogService
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import (
    ConflictError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidInputError,
    NotFoundError,
)


@pytest.fixture
def ledger(session):
    """Ledger service."""
    return LedgerService(session)


@pytest.fixture
def tx_log(session):
    """Transaction log service."""
    return TransactionLogService(session)


class TestLedgerPrimitives:
    """Test credit, debit and transfer."""

    @pytest.mark.asyncio
    async def test_credit_and_debit(self, ledger, make_user):
        """Credits add to and debits subtract from one bucket."""
        user = await make_user("ann")

        await ledger.credit(user.id, BalanceBucket.MAIN, Decimal("100"))
        await ledger.debit(user.id, BalanceBucket.MAIN, "40.5")

        balances = await ledger.get_balances(user.id)
        assert balances.main == Decimal("59.5")
        assert balances.get(BalanceBucket.PROFIT) == Decimal("0")

    @pytest.mark.asyncio
    async def test_debit_entire_balance(self, ledger, make_user):
        """A bucket can be drained to exactly zero."""
        user = await make_user("ann")
        await ledger.credit(user.id, BalanceBucket.BONUS, "25")

        await ledger.debit(user.id, BalanceBucket.BONUS, "25")

        assert (await ledger.get_balances(user.id)).bonus == Decimal("0")

    @pytest.mark.asyncio
    async def test_overdraft_is_rejected(self, ledger, make_user):
        """A debit above the balance fails and changes nothing."""
        user = await make_user("ann")
        await ledger.credit(user.id, BalanceBucket.MAIN, "10")

        with pytest.raises(InsufficientFundsError) as exc_info:
            await ledger.debit(user.id, BalanceBucket.MAIN, "10.01")

        assert exc_info.value.bucket == "main"
        assert exc_info.value.available == Decimal("10")
        assert (await ledger.get_balances(user.id)).main == Decimal("10")

    @pytest.mark.asyncio
    async def test_transfer_between_buckets(self, ledger, make_user):
        """Transfers move value without creating or destroying it."""
        user = await make_user("ann")
        await ledger.credit(user.id, BalanceBucket.PROFIT, "50")

        await ledger.transfer(
            user.id, BalanceBucket.PROFIT, BalanceBucket.MAIN, "30"
        )

        balances = await ledger.get_balances(user.id)
        assert balances.profit == Decimal("20")
        assert balances.main == Decimal("30")

    @pytest.mark.asyncio
    async def test_transfer_overdraft_touches_nothing(self, ledger, make_user):
        """A failed transfer leaves both buckets as they were."""
        user = await make_user("ann")
        await ledger.credit(user.id, BalanceBucket.PROFIT, "20")

        with pytest.raises(InsufficientFundsError):
            await ledger.transfer(
                user.id, BalanceBucket.PROFIT, BalanceBucket.MAIN, "100"
            )

        balances = await ledger.get_balances(user.id)
        assert balances.profit == Decimal("20")
        assert balances.main == Decimal("0")

    @pytest.mark.asyncio
    async def test_transfer_same_bucket(self, ledger, make_user):
        """Source and destination must differ."""
        user = await make_user("ann")

        with pytest.raises(InvalidInputError):
            await ledger.transfer(
                user.id, BalanceBucket.MAIN, BalanceBucket.MAIN, "1"
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    async def test_invalid_amounts(self, ledger, make_user, amount):
        """Non-positive and malformed amounts are rejected."""
        user = await make_user("ann")

        with pytest.raises(InvalidAmountError):
            await ledger.credit(user.id, BalanceBucket.MAIN, amount)

    @pytest.mark.asyncio
    async def test_unknown_user(self, ledger):
        """Operations on a missing user raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await ledger.credit(999, BalanceBucket.MAIN, "1")


class TestTransactionLog:
    """Test TransactionLogService."""

    @pytest.mark.asyncio
    async def test_record_defaults(self, tx_log, make_user):
        """Entries default to completed in the ledger currency."""
        user = await make_user("ann")

        entry = await tx_log.record(
            user.id, TransactionType.BONUS, Decimal("5"), note="Bonus: test"
        )

        assert entry.id is not None
        assert entry.status == TransactionStatus.COMPLETED.value
        assert entry.currency == "USD"
        assert entry.cascaded is False

    @pytest.mark.asyncio
    async def test_negative_amount(self, tx_log, make_user):
        """Entries never carry negative amounts."""
        user = await make_user("ann")

        with pytest.raises(InvalidInputError):
            await tx_log.record(user.id, TransactionType.BONUS, Decimal("-1"))

    @pytest.mark.asyncio
    async def test_duplicate_request_id(self, session, tx_log, make_user):
        """A request ID can be used once."""
        user_id = (await make_user("ann")).id
        await tx_log.record(
            user_id, TransactionType.BONUS, Decimal("1"), request_id="req-1"
        )
        await session.commit()

        with pytest.raises(ConflictError):
            await tx_log.record(
                user_id, TransactionType.BONUS, Decimal("1"), request_id="req-1"
            )

        # Only the failed insert is rolled back
        entry = await tx_log.record(
            user_id, TransactionType.BONUS, Decimal("2"), request_id="req-2"
        )
        await session.commit()
        assert entry.id is not None

    @pytest.mark.asyncio
    async def test_find_replay(self, session, tx_log, make_user):
        """Replays resolve to the original entry for the same operation."""
        ann = await make_user("ann")
        bob = await make_user("bob")
        entry = await tx_log.record(
            ann.id, TransactionType.TRANSFER, Decimal("1"), request_id="req-1"
        )
        await session.commit()

        assert await tx_log.find_replay(None, ann.id, TransactionType.TRANSFER) is None
        assert await tx_log.find_replay("other", ann.id, TransactionType.TRANSFER) is None

        replay = await tx_log.find_replay("req-1", ann.id, TransactionType.TRANSFER)
        assert replay.id == entry.id

        with pytest.raises(ConflictError):
            await tx_log.find_replay("req-1", bob.id, TransactionType.TRANSFER)
        with pytest.raises(ConflictError):
            await tx_log.find_replay("req-1", ann.id, TransactionType.BONUS)

    @pytest.mark.asyncio
    async def test_user_history_newest_first(self, tx_log, make_user):
        """History is newest first and filterable by type."""
        user = await make_user("ann")
        first = await tx_log.record(user.id, TransactionType.DEPOSIT, Decimal("10"))
        second = await tx_log.record(user.id, TransactionType.BONUS, Decimal("1"))
        third = await tx_log.record(user.id, TransactionType.DEPOSIT, Decimal("20"))

        history = await tx_log.get_user_transactions(user.id)
        assert {e.id for e in history} == {first.id, second.id, third.id}
        assert history[-1].id == first.id

        deposits = await tx_log.get_user_transactions(
            user.id, transaction_type=TransactionType.DEPOSIT
        )
        assert [e.id for e in deposits] == [third.id, first.id]

        page = await tx_log.get_user_transactions(user.id, limit=1, offset=1)
        assert len(page) == 1

    @pytest.mark.asyncio
    async def test_transactions_in_window(self, tx_log, make_user):
        """Window queries return entries oldest first."""
        user = await make_user("ann")
        first = await tx_log.record(user.id, TransactionType.PROFIT, Decimal("1"))
        second = await tx_log.record(user.id, TransactionType.PROFIT, Decimal("2"))
        now = utc_now()

        entries = await tx_log.get_transactions_in_window(
            now - timedelta(hours=1),
            now + timedelta(hours=1),
            TransactionType.PROFIT,
        )
        assert [e.id for e in entries] == [first.id, second.id]

        with pytest.raises(InvalidInputError):
            await tx_log.get_transactions_in_window(now, now)

    @pytest.mark.asyncio
    async def test_settle(self, tx_log, make_user):
        """Only pending entries can be settled, once."""
        user = await make_user("ann")
        entry = await tx_log.record(
            user.id,
            TransactionType.DEPOSIT,
            Decimal("10"),
            status=TransactionStatus.PENDING,
            payment_id="pay-1",
        )

        settled = await tx_log.update_status_by_payment_id(
            "pay-1", TransactionStatus.COMPLETED, tx_hash="0xhash"
        )
        assert settled.id == entry.id
        assert settled.status == TransactionStatus.COMPLETED.value
        assert settled.tx_hash == "0xhash"

        with pytest.raises(ConflictError):
            await tx_log.settle(entry, TransactionStatus.FAILED)

        with pytest.raises(NotFoundError):
            await tx_log.update_status_by_payment_id(
                "pay-missing", TransactionStatus.FAILED
            )

    @pytest.mark.asyncio
    async def test_get_transaction(self, tx_log):
        """Missing entries raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await tx_log.get_transaction(12345)
