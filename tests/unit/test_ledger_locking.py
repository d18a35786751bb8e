"""
Tests for per-user serialization in the ledger.

Every balance read-modify-write must load the user row with
SELECT ... FOR UPDATE (populate_existing), never from the identity map.
SQLite ignores row locks, so the statements are inspected on a mocked
session instead.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from app.models.enums import BalanceBucket
from app.models.user import User
from app.services.ledger_service import LedgerService
from app.utils.exceptions import InsufficientFundsError


def _user(main: str = "100", profit: str = "0") -> User:
    return User(
        id=1,
        email="ann@example.com",
        username="ann",
        invite_code="VX-0000A1",
        main_balance=Decimal(main),
        profit_balance=Decimal(profit),
        referral_profit=Decimal("0"),
        bonus_balance=Decimal("0"),
    )


@pytest.fixture
def locked_user(mock_session):
    """User returned by the locking SELECT."""
    user = _user()
    result = MagicMock()
    result.scalar_one_or_none.return_value = user
    mock_session.execute.return_value = result
    return user


def _assert_locked_select(mock_session) -> None:
    assert mock_session.execute.await_count == 1
    stmt = mock_session.execute.await_args.args[0]
    compiled = str(stmt.compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in compiled
    assert stmt.get_execution_options()["populate_existing"] is True
    mock_session.get.assert_not_awaited()


class TestRowLocking:
    """Test that mutations lock the user row first."""

    @pytest.mark.asyncio
    async def test_debit_locks_row(self, mock_session, locked_user):
        """Debits read the balance through a locking select."""
        await LedgerService(mock_session).debit(1, BalanceBucket.MAIN, "40")

        _assert_locked_select(mock_session)
        assert locked_user.main_balance == Decimal("60")
        mock_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_credit_locks_row(self, mock_session, locked_user):
        """Credits read the balance through a locking select."""
        await LedgerService(mock_session).credit(1, BalanceBucket.BONUS, "5")

        _assert_locked_select(mock_session)
        assert locked_user.bonus_balance == Decimal("5")

    @pytest.mark.asyncio
    async def test_transfer_locks_row_once(self, mock_session, locked_user):
        """Both legs of a transfer run under one lock."""
        locked_user.profit_balance = Decimal("50")

        await LedgerService(mock_session).transfer(
            1, BalanceBucket.PROFIT, BalanceBucket.MAIN, "30"
        )

        _assert_locked_select(mock_session)
        assert locked_user.profit_balance == Decimal("20")
        assert locked_user.main_balance == Decimal("130")

    @pytest.mark.asyncio
    async def test_balance_check_uses_locked_row(self, mock_session, locked_user):
        """The insufficient-funds check sees the locked value and writes nothing."""
        with pytest.raises(InsufficientFundsError):
            await LedgerService(mock_session).debit(
                1, BalanceBucket.MAIN, "100.5"
            )

        _assert_locked_select(mock_session)
        assert locked_user.main_balance == Decimal("100")
        mock_session.flush.assert_not_awaited()
