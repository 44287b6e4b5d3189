# routers/__init__.py
from .invoices import router as invoices_router
from .wallet import router as wallet_router

__all__ = [
     "invoices_router",
     "wallet_router",
]
