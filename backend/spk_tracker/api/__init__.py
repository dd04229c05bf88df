"""
API Routes
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Modulo per l'aggregazione dei router versionati.
"""

from spk_tracker.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
