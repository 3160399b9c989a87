"""
Wallet service - balance changes and the append-only ledger.

Every operation locks the wallet row, adjusts the balance and inserts the
ledger row inside one transaction, so the balance always equals the sum of the
ledger. An optional ``reference`` (payment id or caller operation id) makes an
operation idempotent per wallet: repeating it returns the original ledger row.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY
from ...errors import ForbiddenError, NotFoundError, ValidationError
from ...models import Booking, Client, WalletAccount, WalletTransaction
from ...shared.validators import parse_uuid, utcnow
from .repository import WalletRepository
from .schemas import TransactionResponse, WalletOperationResponse, WalletResponse

logger = logging.getLogger(__name__)

CREDIT = "credit"
DEBIT = "debit"

CENTS = Decimal("0.01")


def to_money(amount) -> Decimal:
    """Quantize to two decimals; anything not strictly positive is INVALID_AMOUNT"""
    try:
        value = Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValidationError("Invalid amount", code="INVALID_AMOUNT") from e
    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be greater than zero", code="INVALID_AMOUNT")
    return value


def wallet_response(wallet: WalletAccount) -> WalletResponse:
    return WalletResponse(
        id=wallet.id,
        client_id=wallet.client_id,
        balance=float(wallet.balance or 0),
        currency=wallet.currency,
        updated_at=wallet.updated_at,
    )


def transaction_response(txn: WalletTransaction) -> TransactionResponse:
    return TransactionResponse(
        id=txn.id,
        type=txn.type,
        amount=float(txn.amount),
        balance_after=float(txn.balance_after),
        currency=txn.currency,
        description=txn.description,
        reference=txn.reference,
        booking_id=txn.booking_id,
        status=txn.status,
        metadata=txn.metadata_,
        created_at=txn.created_at,
    )


class WalletService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = WalletRepository()

    def _ensure_wallet(self, client: Client) -> WalletAccount:
        """Clients provisioned before wallets existed get one lazily"""
        wallet = self.repo.lock_wallet(self.db, client.id)
        if wallet is None:
            logger.info(f"🆕 Creating wallet for client {client.id}")
            wallet = WalletAccount(client_id=client.id, balance=Decimal("0"), currency=DEFAULT_CURRENCY)
            self.db.add(wallet)
            self.db.flush()
        return wallet

    def get_wallet(self, client: Client) -> tuple[WalletResponse, list[TransactionResponse]]:
        wallet = self.repo.get_wallet(self.db, client.id)
        if wallet is None:
            wallet = self._ensure_wallet(client)
            self.db.commit()
        transactions = self.repo.get_transactions(self.db, wallet.id)
        return wallet_response(wallet), [transaction_response(t) for t in transactions]

    def _duplicate_of(self, client: Client, reference: str) -> Optional[WalletOperationResponse]:
        """The already-applied operation for ``reference``, re-read after a rollback"""
        wallet = self.repo.get_wallet(self.db, client.id)
        existing = wallet and self.repo.find_by_reference(self.db, wallet.id, reference)
        if not existing:
            return None
        return WalletOperationResponse(
            wallet=wallet_response(wallet),
            transaction=transaction_response(existing),
            duplicate=True,
        )

    def _apply(
        self,
        client: Client,
        kind: str,
        amount,
        description: str,
        reference: Optional[str] = None,
        booking_id=None,
        status: str = "completed",
        metadata: Optional[dict] = None,
        on_applied: Optional[Callable[[WalletTransaction], None]] = None,
    ) -> WalletOperationResponse:
        value = to_money(amount)
        try:
            wallet = self._ensure_wallet(client)

            if reference:
                existing = self.repo.find_by_reference(self.db, wallet.id, reference)
                if existing:
                    logger.info(f"🔁 Wallet operation {reference} already applied, returning original")
                    self.db.rollback()
                    return self._duplicate_of(client, reference)

            balance = Decimal(wallet.balance or 0)
            if kind == DEBIT:
                if balance < value:
                    raise ValidationError("Insufficient balance", code="INSUFFICIENT_BALANCE")
                balance -= value
            else:
                balance += value

            wallet.balance = balance
            wallet.updated_at = utcnow()
            txn = self.repo.add_transaction(
                self.db,
                WalletTransaction(
                    wallet_id=wallet.id,
                    client_id=client.id,
                    type=kind,
                    amount=value,
                    balance_after=balance,
                    currency=wallet.currency,
                    description=description,
                    reference=reference,
                    booking_id=booking_id,
                    status=status,
                    metadata_=metadata or {},
                ),
            )
            if on_applied:
                on_applied(txn)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # A concurrent request inserted the same reference first
            duplicate = self._duplicate_of(client, reference) if reference else None
            if duplicate is None:
                raise
            logger.info(f"🔁 Wallet operation {reference} applied concurrently, returning original")
            return duplicate
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(wallet)
        self.db.refresh(txn)
        logger.info(f"💰 Wallet {wallet.id} {kind} {value} -> balance {wallet.balance}")
        return WalletOperationResponse(
            wallet=wallet_response(wallet), transaction=transaction_response(txn)
        )

    def add_money(
        self, client: Client, amount, payment_method: Optional[str], reference: Optional[str]
    ) -> WalletOperationResponse:
        return self._apply(
            client,
            CREDIT,
            amount,
            description=f"Added money via {payment_method or 'payment'}",
            reference=reference,
            metadata={"paymentMethod": payment_method} if payment_method else None,
        )

    def withdraw(
        self,
        client: Client,
        amount,
        bank_account: Optional[str],
        account_holder: Optional[str],
        reference: Optional[str],
    ) -> WalletOperationResponse:
        # Funds leave the balance immediately; the bank transfer itself settles later
        return self._apply(
            client,
            DEBIT,
            amount,
            description=f"Withdrawn to {bank_account or 'bank account'}",
            reference=reference,
            status="pending",
            metadata={"bankAccount": bank_account, "accountHolder": account_holder},
        )

    def pay_booking(
        self,
        client: Client,
        amount,
        booking_id: str,
        description: Optional[str],
        reference: Optional[str],
    ) -> WalletOperationResponse:
        """Debit the wallet for a booking and mark the booking paid in the same transaction"""
        booking_uuid = parse_uuid(booking_id)
        booking = booking_uuid and self.db.query(Booking).filter(Booking.id == booking_uuid).first()
        if not booking:
            raise NotFoundError("Booking not found", code="BOOKING_NOT_FOUND")
        if booking.client_id != client.id:
            raise ForbiddenError("Not your booking", code="NOT_BOOKING_OWNER")

        def mark_paid(txn: WalletTransaction) -> None:
            booking.payment_status = "paid"
            booking.payment_id = booking.payment_id or f"wallet:{txn.id}"
            booking.paid_amount = float(txn.amount)

        return self._apply(
            client,
            DEBIT,
            amount,
            description=description or f"Payment for booking {booking.id}",
            reference=reference,
            booking_id=booking.id,
            on_applied=mark_paid,
        )

    def list_all_wallets(self) -> list[dict]:
        return [
            {
                **wallet_response(wallet).model_dump(),
                "client_name": wallet.client.name if wallet.client else None,
                "client_email": wallet.client.email if wallet.client else None,
            }
            for wallet in self.repo.get_all_wallets(self.db)
        ]
