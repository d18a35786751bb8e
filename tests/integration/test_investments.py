"""
Integration tests for the investment engine.

Covers:
- Creating and increasing the single active investment
- Package upgrades when the total crosses a range
- Compensation when no package matches
- Daily profit accrual
- Cancellation with principal refund
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from app.config.packages import PackageConfig
from app.config.settings import settings
from app.models.enums import InvestmentStatus, TransactionStatus, TransactionType
from app.services.investment import InvestmentService
from app.services.ledger_service import LedgerService
from app.services.package_catalog import PackageCatalogService
from app.services.transaction_service import TransactionLogService
from app.utils.exceptions import (
    AlreadyClosedError,
    ConflictError,
    InsufficientFundsError,
    InvalidAmountError,
    NoMatchingPackageError,
    NotFoundError,
)


DAY_ONE = date(2026, 10, 19)
DAY_TWO = date(2026, 10, 20)


async def _entries(session, user_id, transaction_type):
    return await TransactionLogService(session).get_user_transactions(
        user_id, transaction_type=transaction_type
    )


@pytest.fixture
def investments(session):
    """Investment service."""
    return InvestmentService(session)


@pytest_asyncio.fixture
async def investor_id(session, catalog, make_user, fund):
    """ID of a user with 2000 in main and the test catalog seeded."""
    user = await make_user("dave")
    await fund(user.id, "2000")
    return user.id


class TestCreateOrIncrease:
    """Test create_or_increase_investment."""

    @pytest.mark.asyncio
    async def test_first_investment(self, session, investments, investor_id):
        """The first placement opens an investment in the matching package."""
        result = await investments.create_or_increase_investment(
            investor_id, "500"
        )

        assert result.created is True
        assert result.package_name == "P1"
        assert result.message == "Investment started successfully in P1 package."
        assert result.investment.amount == Decimal("500")
        assert result.investment.daily_rate == Decimal("1")
        assert result.investment.status == InvestmentStatus.ACTIVE.value

        balances = await LedgerService(session).get_balances(investor_id)
        assert balances.main == Decimal("1500")

        [entry] = await _entries(session, investor_id, TransactionType.INVESTMENT)
        assert entry.amount == Decimal("500")
        assert entry.note == "Started investment in P1"

    @pytest.mark.asyncio
    async def test_increase_with_upgrade(self, session, investments, investor_id):
        """Crossing a range boundary moves the investment up a package."""
        first = await investments.create_or_increase_investment(investor_id, "500")

        result = await investments.create_or_increase_investment(
            investor_id, "1000"
        )

        assert result.upgraded is True
        assert result.created is False
        assert result.package_name == "P2"
        assert result.message == (
            "Investment updated successfully. Current package: P2"
        )
        assert result.investment.id == first.investment.id
        assert result.investment.amount == Decimal("1500")
        assert result.investment.daily_rate == Decimal("1.5")

        [entry] = await _entries(
            session, investor_id, TransactionType.INVESTMENT_UPGRADE
        )
        assert entry.amount == Decimal("1000")
        assert entry.note == "Increased investment and upgraded to P2 (total 1500)"

        assert len(await investments.get_user_investments(investor_id)) == 1
        assert (await LedgerService(session).get_balances(investor_id)).main == (
            Decimal("500")
        )

    @pytest.mark.asyncio
    async def test_increase_within_package(self, session, investments, investor_id):
        """Staying inside the range keeps the package."""
        await investments.create_or_increase_investment(investor_id, "200")

        result = await investments.create_or_increase_investment(investor_id, "300")

        assert result.upgraded is False
        assert result.package_name == "P1"
        [entry] = await _entries(
            session, investor_id, TransactionType.INVESTMENT_UPGRADE
        )
        assert entry.note == "Increased investment in P1 (total 500)"

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, session, investments, investor_id):
        """Nothing changes when main is too low."""
        with pytest.raises(InsufficientFundsError):
            await investments.create_or_increase_investment(investor_id, "5000")

        assert await investments.get_active_investment(investor_id) is None
        balances = await LedgerService(session).get_balances(investor_id)
        assert balances.main == Decimal("2000")

    @pytest.mark.asyncio
    async def test_invalid_amount(self, session, investments, investor_id):
        """Malformed amounts are rejected before any write."""
        with pytest.raises(InvalidAmountError):
            await investments.create_or_increase_investment(investor_id, "abc")

        assert await _entries(
            session, investor_id, TransactionType.INVESTMENT_ERROR
        ) == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, investments, catalog):
        """Placement for a missing user raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await investments.create_or_increase_investment(999, "100")

    @pytest.mark.asyncio
    async def test_replayed_request(self, session, investments, investor_id):
        """The same request ID is applied once."""
        first = await investments.create_or_increase_investment(
            investor_id, "500", request_id="inv-1"
        )
        second = await investments.create_or_increase_investment(
            investor_id, "500", request_id="inv-1"
        )

        assert second.replayed is True
        assert second.transaction.id == first.transaction.id
        assert second.investment.amount == Decimal("500")
        balances = await LedgerService(session).get_balances(investor_id)
        assert balances.main == Decimal("1500")

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_request(
        self, session, investments, investor_id
    ):
        """A duplicate key that slips past the replay lookup is compensated."""
        await investments.create_or_increase_investment(
            investor_id, "500", request_id="inv-1"
        )

        with patch.object(
            TransactionLogService, "find_replay", AsyncMock(return_value=None)
        ):
            with pytest.raises(ConflictError, match="inv-1"):
                await investments.create_or_increase_investment(
                    investor_id, "100", request_id="inv-1"
                )

        balances = await LedgerService(session).get_balances(investor_id)
        assert balances.main == Decimal("1500")
        active = await investments.get_active_investment(investor_id)
        assert active.amount == Decimal("500")

        [entry] = await _entries(session, investor_id, TransactionType.INVESTMENT_ERROR)
        assert entry.status == TransactionStatus.FAILED.value
        assert entry.amount == Decimal("100")
        assert entry.request_id is None


class TestNoMatchingPackage:
    """Test compensation when the catalog has no package for the amount."""

    @pytest.mark.asyncio
    async def test_debit_is_returned(self, session, investments, make_user, fund):
        """Main is restored and one failed entry is logged."""
        await PackageCatalogService(session).seed_defaults(
            [
                PackageConfig(
                    name="Small",
                    min_deposit=Decimal("100"),
                    max_deposit=Decimal("999"),
                    daily_rate=Decimal("1"),
                )
            ]
        )
        await session.commit()
        user_id = (await make_user("erin")).id
        await fund(user_id, "100")

        with pytest.raises(NoMatchingPackageError):
            await investments.create_or_increase_investment(user_id, "50")

        balances = await LedgerService(session).get_balances(user_id)
        assert balances.main == Decimal("100")
        assert await investments.get_active_investment(user_id) is None

        [entry] = await _entries(session, user_id, TransactionType.INVESTMENT_ERROR)
        assert entry.status == TransactionStatus.FAILED.value
        assert entry.amount == Decimal("50")
        assert entry.note.startswith("Investment failed: Amount 50 is below")


class TestDailyAccrual:
    """Test accrue_daily_profit."""

    @pytest.mark.asyncio
    async def test_accrues_daily_rate(self, session, investments, investor_id):
        """One percent of 500 is paid into the profit bucket."""
        await investments.create_or_increase_investment(investor_id, "500")

        result = await investments.accrue_daily_profit(DAY_ONE)

        assert result.investments_processed == 1
        assert result.total_profit == Decimal("5")
        balances = await LedgerService(session).get_balances(investor_id)
        assert balances.profit == Decimal("5")

        [entry] = await _entries(session, investor_id, TransactionType.PROFIT)
        assert entry.amount == Decimal("5")
        assert entry.note == "Daily profit (1% of 500) for P1"
        assert entry.cascaded is False

        investment = await investments.get_active_investment(investor_id)
        assert investment.total_profit == Decimal("5")
        assert investment.last_accrued_on == DAY_ONE

    @pytest.mark.asyncio
    async def test_same_day_is_paid_once(self, session, investments, investor_id):
        """A second run for the same day pays nothing."""
        await investments.create_or_increase_investment(investor_id, "500")
        await investments.accrue_daily_profit(DAY_ONE)

        again = await investments.accrue_daily_profit(DAY_ONE)
        next_day = await investments.accrue_daily_profit(DAY_TWO)

        assert again.investments_processed == 0
        assert next_day.investments_processed == 1
        balances = await LedgerService(session).get_balances(investor_id)
        assert balances.profit == Decimal("10")

    @pytest.mark.asyncio
    async def test_upgraded_rate(self, session, investments, investor_id):
        """After the upgrade to 1500 at 1.5% the day pays 22.5."""
        await investments.create_or_increase_investment(investor_id, "500")
        await investments.create_or_increase_investment(investor_id, "1000")

        result = await investments.accrue_daily_profit(DAY_ONE)

        assert result.total_profit == Decimal("22.5")
        balances = await LedgerService(session).get_balances(investor_id)
        assert balances.profit == Decimal("22.5")

    @pytest.mark.asyncio
    async def test_emergency_stop(self, investments, investor_id, monkeypatch):
        """The ROI emergency stop skips the whole run."""
        await investments.create_or_increase_investment(investor_id, "500")
        monkeypatch.setattr(settings, "emergency_stop_roi", True)

        result = await investments.accrue_daily_profit(DAY_ONE)

        assert result.skipped is True
        assert result.investments_processed == 0

    @pytest.mark.asyncio
    async def test_failed_investment_stays_due(self, investments, investor_id):
        """A failing investment is counted and retried on the next run."""
        await investments.create_or_increase_investment(investor_id, "500")

        with patch.object(
            InvestmentService,
            "_accrue_one",
            AsyncMock(side_effect=RuntimeError("boom")),
        ):
            failed = await investments.accrue_daily_profit(DAY_ONE)

        assert failed.investments_failed == 1
        assert failed.investments_processed == 0

        retried = await investments.accrue_daily_profit(DAY_ONE)
        assert retried.investments_processed == 1


class TestCancellation:
    """Test cancel_investment."""

    @pytest.mark.asyncio
    async def test_refunds_principal(self, session, investments, investor_id):
        """Principal returns to main; accrued profit stays put."""
        placed = await investments.create_or_increase_investment(
            investor_id, "500"
        )
        await investments.accrue_daily_profit(DAY_ONE)

        canceled = await investments.cancel_investment(placed.investment.id)

        assert canceled.status == InvestmentStatus.CANCELED.value
        assert canceled.canceled_at is not None
        balances = await LedgerService(session).get_balances(investor_id)
        assert balances.main == Decimal("2000")
        assert balances.profit == Decimal("5")

        [refund] = await _entries(session, investor_id, TransactionType.REFUND)
        assert refund.amount == Decimal("500")
        assert refund.note == "Investment canceled and refunded"

    @pytest.mark.asyncio
    async def test_cancel_is_terminal(self, investments, investor_id):
        """A canceled investment is neither canceled again nor accrued."""
        placed = await investments.create_or_increase_investment(
            investor_id, "500"
        )
        await investments.cancel_investment(placed.investment.id)

        with pytest.raises(AlreadyClosedError, match="Investment already closed"):
            await investments.cancel_investment(placed.investment.id)

        result = await investments.accrue_daily_profit(DAY_ONE)
        assert result.investments_processed == 0

    @pytest.mark.asyncio
    async def test_new_investment_after_cancel(self, investments, investor_id):
        """Canceling frees the slot for a new active investment."""
        placed = await investments.create_or_increase_investment(
            investor_id, "500"
        )
        await investments.cancel_investment(placed.investment.id)

        result = await investments.create_or_increase_investment(
            investor_id, "1200"
        )

        assert result.created is True
        assert result.package_name == "P2"
        assert result.investment.id != placed.investment.id
        assert len(await investments.get_user_investments(investor_id)) == 2

    @pytest.mark.asyncio
    async def test_unknown_investment(self, investments, catalog):
        """Missing investments raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await investments.cancel_investment(999)


class TestLookup:
    """Test investment lookups."""

    @pytest.mark.asyncio
    async def test_get_investment_with_package(self, investments, investor_id):
        """Lookups by ID carry the package."""
        placed = await investments.create_or_increase_investment(
            investor_id, "500"
        )

        investment = await investments.get_investment(placed.investment.id)

        assert investment.user_id == investor_id
        assert investment.package.name == "P1"

    @pytest.mark.asyncio
    async def test_get_missing_investment(self, investments, catalog):
        """Missing IDs raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await investments.get_investment(999)
