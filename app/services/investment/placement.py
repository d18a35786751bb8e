"""
Investment placement.

Creates the user's single active investment or increases it, moving the
investment to the package that matches the new total.
"""

from dataclasses import dataclass
from decimal import Decimal

from app.models.enums import (
    BalanceBucket,
    InvestmentStatus,
    TransactionStatus,
    TransactionType,
)
from app.models.investment import Investment
from app.models.package import Package
from app.models.transaction import Transaction
from app.services.base_service import transaction
from app.utils.exceptions import LedgerError
from app.utils.formatters import format_decimal
from app.validators.amounts import parse_amount

PLACEMENT_TYPES = (
    TransactionType.INVESTMENT,
    TransactionType.INVESTMENT_UPGRADE,
)


@dataclass
class InvestmentResult:
    """Result of an investment placement."""

    investment: Investment | None
    package_name: str | None
    message: str
    transaction: Transaction
    created: bool = False
    upgraded: bool = False
    replayed: bool = False


class InvestmentPlacementMixin:
    """
    Mixin for investment creation and top-ups.

    Expects the attributes set up by InvestmentServiceCore.
    """

    @transaction
    async def create_or_increase_investment(
        self,
        user_id: int,
        amount: Decimal | int | str,
        request_id: str | None = None,
    ) -> InvestmentResult:
        """
        Move funds from the main bucket into the user's investment.

        The main bucket is debited first. If no package matches, the debit
        is compensated by a credit back to main and one failed
        ``investment-error`` entry is committed before the error surfaces.

        Args:
            user_id: User ID
            amount: Amount to invest
            request_id: Optional idempotency key

        Returns:
            InvestmentResult with the active investment and a confirmation

        Raises:
            InvalidAmountError: If amount is malformed or not positive
            NotFoundError: If user is missing
            InsufficientFundsError: If main balance is too low
            NoMatchingPackageError: If no package covers the resulting total
        """
        amount = parse_amount(amount)

        replay = await self.tx_log.find_replay(
            request_id, user_id, PLACEMENT_TYPES
        )
        if replay is not None:
            investment = await self.investment_repo.get_active_for_user(user_id)
            return InvestmentResult(
                investment=investment,
                package_name=investment.package.name if investment else None,
                message="Request already processed",
                transaction=replay,
                replayed=True,
            )

        # Nothing has changed yet if this fails
        await self.ledger.debit(user_id, BalanceBucket.MAIN, amount)

        try:
            # Investment writes roll back with the savepoint; debit is compensated
            async with self.session.begin_nested():
                result = await self._apply_to_investment(
                    user_id, amount, request_id
                )
        except LedgerError as e:
            await self.ledger.credit(user_id, BalanceBucket.MAIN, amount)
            await self._record_failure(user_id, amount, e)
            raise
        except Exception as e:
            # Rollback reverts the debit together with any partial writes
            await self.rollback()
            await self._record_failure(user_id, amount, e)
            raise

        self.logger.info(
            result.message,
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "investment_id": result.investment.id,
                "package": result.package_name,
                "upgraded": result.upgraded,
            },
        )
        return result

    async def _apply_to_investment(
        self, user_id: int, amount: Decimal, request_id: str | None
    ) -> InvestmentResult:
        catalog = await self.catalog_service.load()
        investment = await self.investment_repo.get_active_for_user(
            user_id, for_update=True
        )

        if investment is None:
            package: Package = catalog.find_package_for(amount)
            investment = await self.investment_repo.create(
                user_id=user_id,
                package_id=package.id,
                amount=amount,
                daily_rate=package.daily_rate,
                total_profit=Decimal("0"),
                status=InvestmentStatus.ACTIVE.value,
            )
            investment.package = package

            entry = await self.tx_log.record(
                user_id,
                TransactionType.INVESTMENT,
                amount,
                note=f"Started investment in {package.name}",
                request_id=request_id,
            )
            return InvestmentResult(
                investment=investment,
                package_name=package.name,
                message=(
                    f"Investment started successfully in {package.name} package."
                ),
                transaction=entry,
                created=True,
            )

        new_total = investment.amount + amount
        package = catalog.find_package_for(new_total)
        upgraded = package.id != investment.package_id

        investment.amount = new_total
        if upgraded:
            investment.package_id = package.id
            investment.package = package
            investment.daily_rate = package.daily_rate
        await self.session.flush()

        if upgraded:
            note = f"Increased investment and upgraded to {package.name}"
        else:
            note = f"Increased investment in {package.name}"

        entry = await self.tx_log.record(
            user_id,
            TransactionType.INVESTMENT_UPGRADE,
            amount,
            note=f"{note} (total {format_decimal(new_total)})",
            request_id=request_id,
        )
        return InvestmentResult(
            investment=investment,
            package_name=package.name,
            message=(
                f"Investment updated successfully. Current package: {package.name}"
            ),
            transaction=entry,
            upgraded=upgraded,
        )

    async def _record_failure(
        self, user_id: int, amount: Decimal, error: Exception
    ) -> None:
        reason = error.message if isinstance(error, LedgerError) else "Unknown error"
        await self.tx_log.record(
            user_id,
            TransactionType.INVESTMENT_ERROR,
            amount,
            status=TransactionStatus.FAILED,
            note=f"Investment failed: {reason}",
        )
        await self.commit()

        self.logger.warning(
            "Investment failed, funds returned to main balance",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "reason": reason,
            },
        )
