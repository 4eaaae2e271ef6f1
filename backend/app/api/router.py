"""
Main API router.
"""

from fastapi import APIRouter
from app.api import accounts, transactions, recurring, recurring_transfers, reconciliation, settings

api_router = APIRouter()

api_router.include_router(accounts.router)
api_router.include_router(transactions.router)
api_router.include_router(recurring.router)
api_router.include_router(recurring_transfers.router)
api_router.include_router(reconciliation.router)
api_router.include_router(settings.router)
