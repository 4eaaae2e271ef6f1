"""Repository for accounts (names and balances only)."""

from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.account import Account


class AccountRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[Account]:
        return self.db.query(Account).order_by(Account.name).all()

    def get_by_id(self, account_id: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.id == account_id).first()

    def get_name_map(self) -> dict:
        return {account.id: account.name for account in self.get_all()}
