"""
Deposit service.

Bridges the payment gateway and the ledger: creates gateway payments,
and applies confirmed or failed deposits to the main bucket and the
transaction log.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import BalanceBucket, TransactionStatus, TransactionType
from app.models.transaction import Transaction
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, transaction
from app.services.ledger_service import LedgerService
from app.services.payment_gateway import PaymentGatewayClient
from app.services.transaction_service import TransactionLogService
from app.utils.exceptions import ConflictError, InvalidInputError, NotFoundError
from app.validators.amounts import parse_amount

# Gateway statuses that end a payment without funds
FAILED_PAYMENT_STATUSES = frozenset({"failed", "expired", "refunded"})
FINISHED_PAYMENT_STATUS = "finished"


@dataclass(frozen=True)
class DepositPayment:
    """Gateway payment awaiting the user's transfer."""

    payment_id: str
    pay_address: str
    pay_currency: str
    amount: Decimal
    transaction: Transaction


class DepositService(BaseService):
    """Deposit creation and settlement."""

    def __init__(
        self,
        session: AsyncSession,
        gateway: PaymentGatewayClient | None = None,
    ) -> None:
        """
        Initialize deposit service.

        Args:
            session: Async database session
            gateway: Payment gateway client (created lazily if omitted)
        """
        super().__init__(session)
        self.gateway = gateway
        self.user_repo = UserRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.ledger = LedgerService(session)
        self.tx_log = TransactionLogService(session)

    @transaction
    async def create_payment(
        self,
        user_id: int,
        amount: Decimal | int | str,
        pay_currency: str,
    ) -> DepositPayment:
        """
        Create a gateway payment and log a pending deposit.

        Args:
            user_id: User ID
            amount: Amount in the ledger currency
            pay_currency: Gateway network, e.g. USDTBSC

        Returns:
            DepositPayment

        Raises:
            ConflictError: If deposits are stopped
            InvalidInputError: If the network is unsupported
            NotFoundError: If user is missing
            UpstreamFailureError: If the gateway fails or times out
        """
        if settings.emergency_stop_deposits:
            raise ConflictError("Deposits are temporarily disabled")

        amount = parse_amount(amount)
        pay_currency = pay_currency.strip().upper()
        if pay_currency not in settings.get_supported_pay_currencies():
            raise InvalidInputError(
                f"Unsupported payment network: {pay_currency}"
            )

        if not await self.user_repo.exists(id=user_id):
            raise NotFoundError(f"User {user_id} not found")

        gateway = self.gateway or PaymentGatewayClient()
        callback_url = (
            f"{settings.payment_callback_url.rstrip('/')}/payments/ipn"
            if settings.payment_callback_url
            else None
        )
        try:
            payment = await gateway.create_payment(
                order_id=str(user_id),
                amount=amount,
                price_currency=settings.default_currency,
                pay_currency=pay_currency,
                callback_url=callback_url,
            )
        finally:
            if self.gateway is None:
                await gateway.close()

        entry = await self.tx_log.record(
            user_id,
            TransactionType.DEPOSIT,
            amount,
            status=TransactionStatus.PENDING,
            note=f"Payment created ({payment.pay_currency}) #{payment.payment_id}",
            payment_id=payment.payment_id,
        )

        self.logger.info(
            "Payment created",
            extra={
                "user_id": user_id,
                "payment_id": payment.payment_id,
                "amount": str(amount),
                "pay_currency": payment.pay_currency,
            },
        )
        return DepositPayment(
            payment_id=payment.payment_id,
            pay_address=payment.pay_address,
            pay_currency=payment.pay_currency,
            amount=amount,
            transaction=entry,
        )

    @transaction
    async def confirm_deposit(
        self,
        user_id: int,
        amount: Decimal | int | str,
        currency: str | None = None,
        payment_id: str | None = None,
        tx_hash: str | None = None,
    ) -> Transaction:
        """
        Credit a confirmed deposit to the main bucket.

        Completes the matching pending entry in place when there is one,
        otherwise appends a completed deposit entry. A payment that is
        already completed is left as is.

        Args:
            user_id: User ID
            amount: Confirmed amount
            currency: Currency code (defaults to settings)
            payment_id: Gateway payment ID
            tx_hash: Blockchain transaction hash

        Returns:
            Deposit transaction

        Raises:
            NotFoundError: If user is missing
            ConflictError: If the payment belongs to another user or failed
        """
        amount = parse_amount(amount)

        entry = None
        if payment_id:
            entry = await self.transaction_repo.get_by_payment_id(
                payment_id, for_update=True
            )
            if entry is not None:
                if entry.user_id != user_id:
                    raise ConflictError(
                        f"Payment {payment_id} belongs to another user"
                    )
                if entry.status == TransactionStatus.COMPLETED.value:
                    self.logger.info(
                        "Deposit already confirmed",
                        extra={"payment_id": payment_id, "user_id": user_id},
                    )
                    return entry
                if entry.status == TransactionStatus.FAILED.value:
                    raise ConflictError(f"Payment {payment_id} already failed")

        await self.ledger.credit(user_id, BalanceBucket.MAIN, amount)

        if entry is not None:
            entry.amount = amount
            await self.tx_log.settle(
                entry,
                TransactionStatus.COMPLETED,
                tx_hash=tx_hash,
                note=f"Deposit confirmed #{payment_id}",
            )
        else:
            entry = await self.tx_log.record(
                user_id,
                TransactionType.DEPOSIT,
                amount,
                currency=currency,
                note="Deposit confirmed",
                payment_id=payment_id,
                tx_hash=tx_hash,
            )

        self.logger.info(
            "Deposit confirmed",
            extra={
                "user_id": user_id,
                "amount": str(amount),
                "payment_id": payment_id,
                "transaction_id": entry.id,
            },
        )
        return entry

    @transaction
    async def fail_deposit(
        self,
        user_id: int,
        payment_id: str,
        reason: str | None = None,
    ) -> Transaction:
        """
        Record a failed or expired deposit. No balance changes.

        Args:
            user_id: User ID
            payment_id: Gateway payment ID
            reason: Failure reason

        Returns:
            Failed deposit transaction

        Raises:
            NotFoundError: If user is missing
            ConflictError: If the payment was already completed or belongs
                to another user
        """
        note = f"Deposit failed #{payment_id}"
        if reason:
            note = f"{note}: {reason}"

        entry = await self.transaction_repo.get_by_payment_id(
            payment_id, for_update=True
        )
        if entry is not None:
            if entry.user_id != user_id:
                raise ConflictError(
                    f"Payment {payment_id} belongs to another user"
                )
            if entry.status == TransactionStatus.FAILED.value:
                return entry
            await self.tx_log.settle(entry, TransactionStatus.FAILED, note=note)
        else:
            if not await self.user_repo.exists(id=user_id):
                raise NotFoundError(f"User {user_id} not found")
            entry = await self.tx_log.record(
                user_id,
                TransactionType.DEPOSIT,
                Decimal("0"),
                status=TransactionStatus.FAILED,
                note=note,
                payment_id=payment_id,
            )

        self.logger.warning(
            "Deposit failed",
            extra={
                "user_id": user_id,
                "payment_id": payment_id,
                "reason": reason,
            },
        )
        return entry

    async def handle_ipn(self, payload: dict[str, Any]) -> Transaction | None:
        """
        Apply a gateway status callback.

        ``finished`` confirms the deposit; ``failed``, ``expired`` and
        ``refunded`` fail it; other statuses are only logged.

        Args:
            payload: Callback body

        Returns:
            Affected transaction, or None if no payment matches
        """
        status = str(payload.get("payment_status") or "").lower()
        entry = None
        for key in ("payment_id", "parent_payment_id"):
            if payload.get(key) is not None:
                entry = await self.transaction_repo.get_by_payment_id(
                    str(payload[key])
                )
                if entry is not None:
                    break

        if entry is None:
            self.logger.warning(
                "No matching payment found for IPN",
                extra={"payment_id": payload.get("payment_id"), "status": status},
            )
            return None

        if status == FINISHED_PAYMENT_STATUS:
            return await self.confirm_deposit(
                entry.user_id,
                entry.amount,
                payment_id=entry.payment_id,
                tx_hash=payload.get("payin_hash"),
            )
        if status in FAILED_PAYMENT_STATUSES:
            return await self.fail_deposit(
                entry.user_id, entry.payment_id, reason=f"Payment {status}"
            )

        self.logger.info(
            "IPN status ignored",
            extra={"payment_id": entry.payment_id, "status": status},
        )
        return entry
