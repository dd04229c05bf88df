"""
Schemas comuni per le risposte API
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Involucro standard delle risposte: ogni operazione restituisce
    un esito (success) invece di interrompere il chiamante.
    """
    success: bool = True
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    """Corpo delle risposte di errore prodotte dagli exception handler."""
    success: bool = False
    error_code: str
    detail: str
    field: Optional[str] = None
    extra: Optional[dict[str, Any]] = None
