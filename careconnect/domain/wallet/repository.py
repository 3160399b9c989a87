"""Wallet repository - Database operations for wallet accounts and the ledger"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import WalletAccount, WalletTransaction


class WalletRepository:
    """Repository for wallet database operations"""

    @staticmethod
    def get_wallet(db: Session, client_id) -> Optional[WalletAccount]:
        return db.query(WalletAccount).filter(WalletAccount.client_id == client_id).first()

    @staticmethod
    def lock_wallet(db: Session, client_id) -> Optional[WalletAccount]:
        """SELECT ... FOR UPDATE on the client's wallet row (a no-op on SQLite)"""
        return (
            db.query(WalletAccount)
            .filter(WalletAccount.client_id == client_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def find_by_reference(db: Session, wallet_id, reference: str) -> Optional[WalletTransaction]:
        return (
            db.query(WalletTransaction)
            .filter(WalletTransaction.wallet_id == wallet_id, WalletTransaction.reference == reference)
            .first()
        )

    @staticmethod
    def add_transaction(db: Session, transaction: WalletTransaction) -> WalletTransaction:
        db.add(transaction)
        db.flush()
        return transaction

    @staticmethod
    def get_transactions(db: Session, wallet_id, limit: int = 100) -> list[WalletTransaction]:
        return (
            db.query(WalletTransaction)
            .filter(WalletTransaction.wallet_id == wallet_id)
            .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id)
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_all_wallets(db: Session) -> list[WalletAccount]:
        return (
            db.query(WalletAccount)
            .options(joinedload(WalletAccount.client))
            .order_by(WalletAccount.updated_at.desc())
            .all()
        )
