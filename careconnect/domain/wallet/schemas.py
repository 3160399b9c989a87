"""Wallet schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AddMoneyRequest(BaseModel):
    amount: float
    paymentMethod: Optional[str] = None
    paymentId: Optional[str] = None
    reference: Optional[str] = Field(default=None, max_length=255)


class WithdrawRequest(BaseModel):
    amount: float
    bankAccount: Optional[str] = None
    accountHolder: Optional[str] = None
    reference: Optional[str] = Field(default=None, max_length=255)


class PayRequest(BaseModel):
    amount: float
    bookingId: str
    description: Optional[str] = None
    reference: Optional[str] = Field(default=None, max_length=255)


class WalletResponse(BaseModel):
    id: UUID
    client_id: UUID
    balance: float
    currency: str
    updated_at: Optional[datetime] = None


class TransactionResponse(BaseModel):
    id: UUID
    type: str
    amount: float
    balance_after: float
    currency: str
    description: Optional[str] = None
    reference: Optional[str] = None
    booking_id: Optional[UUID] = None
    status: str
    metadata: Optional[dict] = None
    created_at: Optional[datetime] = None


class WalletOperationResponse(BaseModel):
    wallet: WalletResponse
    transaction: TransactionResponse
    duplicate: bool = False
