"""
API v1 Routes
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from spk_tracker.api.v1 import payments, spk, vendors

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(spk.router)
api_v1_router.include_router(payments.router)
api_v1_router.include_router(vendors.router)

# Esportazione
__all__ = ["api_v1_router"]
