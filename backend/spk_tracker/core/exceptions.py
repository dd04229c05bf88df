"""
Eccezioni Custom per l'applicazione.
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Definisce eccezioni specifiche del dominio per una gestione
centralizzata degli errori.

NOTA: BusinessValidationError è volutamente distinta da pydantic.ValidationError.
- pydantic.ValidationError: errori di formato/tipo nei dati di input (gestiti da FastAPI → 422)
- BusinessValidationError: violazioni delle regole di business logic (gestiti dal nostro handler → 422)

Politica di propagazione:
- NotFoundError e BusinessValidationError arrivano al chiamante con il loro messaggio.
- PersistenceError e RenderError vengono loggate con il dettaglio completo,
  al chiamante arriva solo `public_detail`.
- NotificationError non esce mai dal dispatcher delle notifiche.
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "BusinessValidationError",
    "ValidationError",       # alias di BusinessValidationError
    "PersistenceError",
    "RenderError",
    "NotificationError",
]


class AppException(Exception):
    """
    Base exception per l'applicazione.

    Tutte le eccezioni custom ereditano da questa classe base.

    Attributes:
        status_code: HTTP status code da restituire al client
        error_code: Identificativo univoco dell'errore per il frontend
        detail: Messaggio di errore (può contenere dettagli tecnici)
        public_detail: Messaggio mostrato all'utente finale
        extra: Dizionario con dati aggiuntivi per il frontend
    """

    # Default values - overridden in subclasses
    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    expose_detail: bool = True
    generic_message: str = "Errore interno del server"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Inizializza l'eccezione.

        Args:
            detail: Messaggio di errore dettagliato
            error_code: Identificativo univoco (default: quello di classe)
            extra: Dati aggiuntivi da passare al frontend (default: None)
        """
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra if extra is not None else None
        self.status_code = self.__class__.status_code
        super().__init__(detail)

    @property
    def public_detail(self) -> str:
        """Messaggio sicuro da restituire al chiamante."""
        return self.detail if self.expose_detail else self.generic_message


class NotFoundError(AppException):
    """
    Eccezione sollevata quando una risorsa non viene trovata.

    Utilizzata quando un SPK o un pagamento cercato non esiste nel database.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Risorsa non trovata",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BusinessValidationError(ValueError, AppException):
    """
    Eccezione sollevata per violazioni delle regole di business logic.

    Eredita da ValueError per essere catturata dai validatori Pydantic.
    Porta con sé il nome del campo a cui è attribuito l'errore, usato dal
    frontend per evidenziare l'input sbagliato.

    NON confondere con pydantic.ValidationError che gestisce
    la validazione dello schema/formato dei dati in input.

    Esempi di utilizzo:
        - "Il nome del vendor è obbligatorio" (field="vendor_name")
        - "La somma delle percentuali deve essere 100%" (field="dp_percentage")
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"

    def __init__(
        self,
        detail: str = "Validazione dati fallita",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ) -> None:
        """
        Inizializza l'eccezione BusinessValidationError.

        Args:
            detail: Messaggio di errore (default: "Validazione dati fallita")
            error_code: Identificativo univoco (default: "BUSINESS_VALIDATION_ERROR")
            extra: Dati aggiuntivi da passare al frontend (default: None)
            field: Campo di input a cui è attribuito l'errore
        """
        self.field = field
        if field is not None:
            extra = {**(extra or {}), "field": field}
        # Chiama AppException.__init__ direttamente per evitare ValueError
        AppException.__init__(self, detail, error_code, extra)


# Alias per compatibilità
ValidationError = BusinessValidationError


class PersistenceError(AppException):
    """
    Eccezione sollevata quando un'operazione sullo store fallisce.

    Il dettaglio tecnico viene loggato, al chiamante arriva un messaggio generico.
    """

    status_code: int = 500
    error_code: str = "PERSISTENCE_ERROR"
    expose_detail: bool = False
    generic_message: str = "Operazione non riuscita, riprovare più tardi"

    def __init__(
        self,
        detail: str = "Operazione sul database fallita",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class RenderError(AppException):
    """
    Eccezione sollevata quando la generazione del documento SPK fallisce.

    Distinta da NotFoundError: l'SPK esiste ma il documento non è stato prodotto.
    """

    status_code: int = 500
    error_code: str = "RENDER_FAILED"
    expose_detail: bool = False
    generic_message: str = "Generazione del documento non riuscita"

    def __init__(
        self,
        detail: str = "Generazione documento fallita",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class NotificationError(AppException):
    """
    Errore di consegna di una notifica webhook.

    Viene catturato e loggato dal dispatcher, non viene mai propagato
    all'operazione che ha generato l'evento.
    """

    status_code: int = 502
    error_code: str = "NOTIFICATION_FAILED"
    expose_detail: bool = False

    def __init__(
        self,
        detail: str = "Invio notifica fallito",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)
