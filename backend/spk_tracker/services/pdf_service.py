"""
Service per la generazione del documento SPK con WeasyPrint + Jinja2.
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Il documento è in lingua indonesiana, con layout fisso. L'HTML è una
funzione pura dello snapshot dell'SPK: nessun orologio, nessun dato casuale.
"""

import datetime
import logging
import os
import threading
from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from spk_tracker.core.exceptions import RenderError
from spk_tracker.schemas.payment import TERM_LABELS, sort_by_term

logger = logging.getLogger(__name__)

# Path alle cartelle templates
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATES_DIR = os.path.join(BASE_DIR, "templates")

DOCUMENT_TEMPLATE = "spk_document.html"
DOCUMENT_STYLESHEET = "spk_style.css"

# Clausole fisse stampate in ogni SPK
TERMS_AND_CONDITIONS = (
    "Vendor wajib menyelesaikan pekerjaan sesuai dengan spesifikasi yang telah disepakati.",
    "Pembayaran akan dilakukan sesuai dengan termin yang tercantum dalam SPK ini.",
    "Vendor bertanggung jawab atas kualitas pekerjaan yang dilakukan.",
    "Perubahan scope pekerjaan harus mendapat persetujuan tertulis dari kedua belah pihak.",
)

INDONESIAN_MONTHS = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

CURRENCY_SYMBOLS = {"IDR": "Rp"}


# -------------------------------------------------------------------
# Filtri Jinja2
# -------------------------------------------------------------------

def _group_thousands(digits: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return ".".join(groups)


def format_currency(value: Any, currency: str = "IDR") -> str:
    """
    Formatta un importo in stile id-ID, senza decimali.

    Example:
        >>> format_currency(Decimal("100000000"))
        'Rp 100.000.000'
        >>> format_currency(2500, "USD")
        'USD 2.500'
    """
    if value is None:
        return "-"
    amount = Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    symbol = CURRENCY_SYMBOLS.get((currency or "").upper(), (currency or "").upper())
    return f"{sign}{symbol} {_group_thousands(str(abs(amount)))}"


def format_date_long(value: Any) -> str:
    """
    Data in formato lungo indonesiano (es. 15 Januari 2026).

    Accetta date, datetime o stringhe ISO 8601.
    """
    if value is None or value == "":
        return "-"
    if isinstance(value, str):
        value = datetime.date.fromisoformat(value[:10])
    if isinstance(value, datetime.datetime):
        value = value.date()
    return f"{value.day} {INDONESIAN_MONTHS[value.month - 1]} {value.year}"


def format_percentage(value: Any) -> str:
    """Percentuale senza zeri superflui, virgola decimale (es. 33,5%)."""
    if value is None:
        return "-"
    pct = Decimal(str(value))
    text = format(pct.normalize(), "f") if pct != pct.to_integral() else str(int(pct))
    return f"{text.replace('.', ',')}%"


# -------------------------------------------------------------------
# WeasyPrint
# -------------------------------------------------------------------

def _get_weasyprint():
    """Import lazy di weasyprint: senza le librerie di sistema (Pango/GTK) l'import fallisce."""
    try:
        from weasyprint import CSS, HTML
        return HTML, CSS
    except (ImportError, OSError) as e:
        raise RenderError(
            f"WeasyPrint o le sue dipendenze di sistema non trovate: {e}"
        ) from e


class SpkDocumentRenderer:
    """
    Genera il documento SPK da template HTML/CSS.

    render_html() è deterministica; render_pdf() memorizza il risultato per
    (id SPK, revisione) e garantisce al massimo un rendering in corso per
    chiave.
    """

    def __init__(self, templates_dir: str = TEMPLATES_DIR, memo_size: int = 64):
        self.templates_dir = templates_dir
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["format_currency"] = format_currency
        self.env.filters["format_date_long"] = format_date_long
        self.env.filters["format_percentage"] = format_percentage

        self._memo_size = memo_size
        self._memo: "OrderedDict[tuple, bytes]" = OrderedDict()
        self._memo_lock = threading.Lock()
        self._key_locks: dict[tuple, threading.Lock] = {}

    # ---------------------------------------------------------------
    # HTML
    # ---------------------------------------------------------------

    def build_context(self, work_order, payments: Optional[Iterable] = None) -> dict:
        """Contesto del template: SPK, righe di pagamento ordinate e clausole."""
        if payments is None:
            payments = getattr(work_order, "payments", None) or []
        rows = [
            {
                "term": getattr(p.term, "value", p.term),
                "label": TERM_LABELS.get(getattr(p.term, "value", p.term), p.term),
                "percentage": p.percentage,
                "amount": p.amount,
            }
            for p in sort_by_term(list(payments))
        ]
        return {
            "spk": work_order,
            "payment_rows": rows,
            "terms": TERMS_AND_CONDITIONS,
        }

    def render_html(self, work_order, payments: Optional[Iterable] = None) -> str:
        """
        Genera l'HTML del documento.

        Args:
            work_order: WorkOrder (o snapshot) con i campi dell'SPK
            payments: Pagamenti dell'SPK (default: work_order.payments)

        Returns:
            str: HTML completo, identico per input identici
        """
        template = self.env.get_template(DOCUMENT_TEMPLATE)
        return template.render(self.build_context(work_order, payments))

    # ---------------------------------------------------------------
    # PDF
    # ---------------------------------------------------------------

    def _lock_for(self, key: tuple) -> threading.Lock:
        with self._memo_lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def _remember(self, key: tuple, content: bytes) -> None:
        with self._memo_lock:
            self._memo[key] = content
            self._memo.move_to_end(key)
            while len(self._memo) > self._memo_size:
                evicted, _ = self._memo.popitem(last=False)
                self._key_locks.pop(evicted, None)

    def _cached(self, key: tuple) -> Optional[bytes]:
        with self._memo_lock:
            content = self._memo.get(key)
            if content is not None:
                self._memo.move_to_end(key)
            return content

    def render_pdf(self, work_order, payments: Optional[Iterable] = None) -> bytes:
        """
        Genera il PDF dell'SPK.

        Returns:
            bytes: PDF binario pronto per il download

        Raises:
            RenderError: Se WeasyPrint non è disponibile o la generazione fallisce
        """
        key = (str(work_order.id), work_order.revision)
        cached = self._cached(key)
        if cached is not None:
            return cached

        with self._lock_for(key):
            # Un altro thread può aver completato il rendering nel frattempo
            cached = self._cached(key)
            if cached is not None:
                return cached

            try:
                HTML, CSS = _get_weasyprint()
                html_out = self.render_html(work_order, payments)
                css = CSS(filename=os.path.join(self.templates_dir, DOCUMENT_STYLESHEET))
                content = HTML(string=html_out, base_url=self.templates_dir).write_pdf(
                    stylesheets=[css]
                )
            except RenderError:
                raise
            except Exception as e:
                logger.error(
                    "Errore generazione PDF SPK %s: %s",
                    work_order.spk_number,
                    e,
                    exc_info=True,
                )
                raise RenderError(
                    f"Generazione PDF SPK {work_order.spk_number} fallita: {e}"
                ) from e

            self._remember(key, content)
            logger.info(
                "Generato PDF SPK %s (revisione %s, %d byte)",
                work_order.spk_number,
                work_order.revision,
                len(content),
            )
            return content

    def forget(self, work_order_id) -> None:
        """Rimuove dalla memoria tutte le revisioni di un SPK."""
        with self._memo_lock:
            for key in [k for k in self._memo if k[0] == str(work_order_id)]:
                self._memo.pop(key, None)
                self._key_locks.pop(key, None)
