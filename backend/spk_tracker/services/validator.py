"""
Validazione dell'input di creazione SPK e aggiornamento pagamenti
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Ogni controllo è una funzione indipendente che solleva ValidationError
con il campo a cui è attribuito l'errore. validate_work_order_input()
li esegue nell'ordine stabilito e si ferma al primo errore: nessun dato
viene applicato se la validazione fallisce.
"""

import datetime
import logging
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel, to_snake

from spk_tracker.core.exceptions import ValidationError
from spk_tracker.schemas.payment import PaymentStatus, PaymentStatusUpdate, blank_to_none
from spk_tracker.schemas.work_order import WorkOrderCreate
from spk_tracker.services.split_calculator import (
    HUNDRED,
    PERCENTAGE_PLACES,
    PERCENTAGE_TOLERANCE,
    quantize_amount,
)

logger = logging.getLogger(__name__)

_EMAIL_ADAPTER = TypeAdapter(EmailStr)

PERCENTAGE_FIELDS = ("dp_percentage", "progress_percentage", "final_percentage")

# L'errore sulla somma delle percentuali è sempre attribuito al campo DP,
# anche quando lo squilibrio dipende dagli altri due termini.
SPLIT_TOTAL_FIELD = "dp_percentage"


def _raw_value(raw: Mapping[str, Any], field: str) -> Any:
    """Legge un campo accettando sia la chiave snake_case che camelCase."""
    if field in raw:
        return raw[field]
    return raw.get(to_camel(field))


def _to_decimal(value: Any, field: str, label: str) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{label} è obbligatorio", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{label} deve essere un numero", field=field)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{label} deve essere un numero", field=field) from None
    if not number.is_finite():
        raise ValidationError(f"{label} deve essere un numero", field=field)
    return number


# -------------------------------------------------------------------
# Controlli singoli
# -------------------------------------------------------------------

def check_required_text(value: Any, field: str, label: str) -> str:
    """Verifica che un campo testuale obbligatorio non sia vuoto."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} è obbligatorio", field=field)
    return value.strip()


def check_start_date(value: Any) -> datetime.date:
    """Verifica che la data di inizio sia presente e interpretabile (ISO 8601)."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("La data di inizio è obbligatoria", field="start_date")
    try:
        return datetime.date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ValidationError(
            f"Data di inizio non valida: '{value}'", field="start_date"
        ) from None


def check_vendor_email(value: Any) -> Optional[str]:
    """Se presente, verifica che l'email del vendor sia ben formata."""
    value = blank_to_none(value)
    if value is None:
        return None
    try:
        return str(_EMAIL_ADAPTER.validate_python(value))
    except PydanticValidationError:
        raise ValidationError("Formato email non valido", field="vendor_email") from None


def check_contract_value(value: Any) -> Decimal:
    """Verifica che il valore di contratto sia un numero maggiore di zero."""
    amount = _to_decimal(value, "contract_value", "Il valore del contratto")
    if amount <= 0:
        raise ValidationError(
            "Il valore del contratto deve essere maggiore di 0", field="contract_value"
        )
    return amount


def check_currency(value: Any, default: str) -> str:
    """Verifica il codice valuta (3 lettere); se assente usa il default."""
    value = blank_to_none(value)
    if value is None:
        return default
    if not isinstance(value, str) or len(value) != 3 or not value.isalpha():
        raise ValidationError(
            "La valuta deve essere un codice di 3 lettere", field="currency"
        )
    return value.upper()


def check_percentage(value: Any, field: str) -> Decimal:
    """Verifica che una percentuale sia compresa tra 0 e 100, con al massimo 2 decimali."""
    pct = _to_decimal(value, field, "La percentuale")
    if pct < 0 or pct > HUNDRED:
        raise ValidationError("La percentuale deve essere tra 0 e 100", field=field)
    if pct != pct.quantize(Decimal(1).scaleb(-PERCENTAGE_PLACES), rounding=ROUND_DOWN):
        raise ValidationError(
            f"La percentuale ammette al massimo {PERCENTAGE_PLACES} decimali", field=field
        )
    return pct


def check_split_total(dp_pct: Decimal, progress_pct: Decimal, final_pct: Decimal) -> None:
    """Verifica che le tre percentuali sommino a 100 (± 0.01)."""
    total = Decimal(dp_pct) + Decimal(progress_pct) + Decimal(final_pct)
    if abs(total - HUNDRED) >= PERCENTAGE_TOLERANCE:
        raise ValidationError(
            f"La somma delle percentuali di pagamento deve essere 100% (attuale: {total}%)",
            field=SPLIT_TOTAL_FIELD,
            extra={"total": str(total)},
        )


# -------------------------------------------------------------------
# Validazione completa
# -------------------------------------------------------------------

def validate_work_order_input(
    raw: Union[Mapping[str, Any], WorkOrderCreate],
    default_currency: str = "IDR",
) -> WorkOrderCreate:
    """
    Valida l'input di creazione di un SPK.

    Ordine dei controlli: nome vendor, nome progetto, data inizio, email,
    valore contratto, valuta, percentuali, somma percentuali.

    Args:
        raw: Dizionario (chiavi snake_case o camelCase) o WorkOrderCreate
        default_currency: Valuta usata se l'input non la specifica

    Returns:
        WorkOrderCreate: Input normalizzato e tipizzato

    Raises:
        ValidationError: Al primo controllo fallito, con il campo attribuito
    """
    if isinstance(raw, WorkOrderCreate):
        raw = raw.model_dump()

    vendor_name = check_required_text(_raw_value(raw, "vendor_name"), "vendor_name", "Il nome del vendor")
    project_name = check_required_text(_raw_value(raw, "project_name"), "project_name", "Il nome del progetto")
    start_date = check_start_date(_raw_value(raw, "start_date"))
    vendor_email = check_vendor_email(_raw_value(raw, "vendor_email"))
    contract_value = check_contract_value(_raw_value(raw, "contract_value"))
    currency = check_currency(_raw_value(raw, "currency"), default_currency)
    # Il valore di contratto è registrato alla minor unit della valuta
    contract_value = quantize_amount(contract_value, currency)
    if contract_value <= 0:
        raise ValidationError(
            "Il valore del contratto deve essere maggiore di 0", field="contract_value"
        )
    dp_pct, progress_pct, final_pct = (
        check_percentage(_raw_value(raw, field), field) for field in PERCENTAGE_FIELDS
    )
    check_split_total(dp_pct, progress_pct, final_pct)

    data = {
        "vendor_name": vendor_name,
        "vendor_email": vendor_email,
        "vendor_phone": _raw_value(raw, "vendor_phone"),
        "project_name": project_name,
        "project_description": _raw_value(raw, "project_description"),
        "contract_value": contract_value,
        "currency": currency,
        "start_date": start_date,
        "end_date": _raw_value(raw, "end_date"),
        "dp_percentage": dp_pct,
        "progress_percentage": progress_pct,
        "final_percentage": final_pct,
        "notes": _raw_value(raw, "notes"),
    }
    try:
        return WorkOrderCreate.model_validate(data)
    except PydanticValidationError as e:
        raise _from_pydantic(e) from None


def validate_payment_update(raw: Union[Mapping[str, Any], PaymentStatusUpdate]) -> PaymentStatusUpdate:
    """
    Valida l'input di aggiornamento di un pagamento.

    Lo stato deve essere pending, paid o overdue; data di pagamento e
    riferimento sono opzionali.

    Raises:
        ValidationError: Se lo stato non è valido o la data non è interpretabile
    """
    if isinstance(raw, PaymentStatusUpdate):
        return raw

    status = _raw_value(raw, "status")
    allowed = [s.value for s in PaymentStatus]
    if getattr(status, "value", status) not in allowed:
        raise ValidationError(
            f"Stato pagamento non valido: '{status}' (ammessi: {', '.join(allowed)})",
            field="status",
        )
    try:
        return PaymentStatusUpdate.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise _from_pydantic(e) from None


def _from_pydantic(error: PydanticValidationError) -> ValidationError:
    """Converte il primo errore pydantic in ValidationError con campo."""
    first = error.errors()[0]
    loc = first.get("loc") or ()
    field = to_snake(str(loc[0])) if loc else None
    logger.debug("Validazione schema fallita: %s", error.errors())
    return ValidationError(first.get("msg", "Dati non validi"), field=field)
