"""Wallet router - client wallet balance, top-ups, withdrawals and booking payments"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_client, require_admin
from ...database import get_db
from ...models import AdminUser, Client
from .schemas import AddMoneyRequest, PayRequest, WalletOperationResponse, WithdrawRequest
from .service import WalletService

router = APIRouter(tags=["Wallet"])


def get_wallet_service(db: Session = Depends(get_db)) -> WalletService:
    return WalletService(db)


@router.get("/wallet")
async def get_wallet(
    client: Client = Depends(get_current_client),
    service: WalletService = Depends(get_wallet_service),
):
    wallet, transactions = service.get_wallet(client)
    return {"wallet": wallet, "transactions": transactions}


@router.post("/wallet/add", response_model=WalletOperationResponse)
async def add_money(
    data: AddMoneyRequest,
    client: Client = Depends(get_current_client),
    service: WalletService = Depends(get_wallet_service),
):
    return service.add_money(
        client, data.amount, data.paymentMethod, data.reference or data.paymentId
    )


@router.post("/wallet/withdraw", response_model=WalletOperationResponse)
async def withdraw(
    data: WithdrawRequest,
    client: Client = Depends(get_current_client),
    service: WalletService = Depends(get_wallet_service),
):
    return service.withdraw(
        client, data.amount, data.bankAccount, data.accountHolder, data.reference
    )


@router.post("/wallet/pay", response_model=WalletOperationResponse)
async def pay(
    data: PayRequest,
    client: Client = Depends(get_current_client),
    service: WalletService = Depends(get_wallet_service),
):
    return service.pay_booking(
        client, data.amount, data.bookingId, data.description, data.reference
    )


@router.get("/admin/wallets")
async def list_wallets(
    _admin: AdminUser = Depends(require_admin),
    service: WalletService = Depends(get_wallet_service),
):
    return {"wallets": service.list_all_wallets()}
