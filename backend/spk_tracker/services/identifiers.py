"""
Identificativi derivati degli SPK
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Numero SPK leggibile, slug di accesso del vendor e link pubblici.
"""

import random
import re
import uuid
from typing import Optional
from urllib.parse import quote

_WHITESPACE_RUN = re.compile(r"\s+")


def generate_spk_number(year: int, rng: Optional[random.Random] = None) -> str:
    """
    Genera un numero SPK nel formato SPK-<anno>-<4 cifre>.

    Il numero casuale non è garantito unico: l'unicità viene verificata
    dal service prima dell'inserimento.
    """
    rng = rng or random
    return f"SPK-{year}-{rng.randint(1000, 9999)}"


def vendor_slug(vendor_name: str) -> str:
    """
    Slug di accesso del vendor: minuscolo, ogni sequenza di spazi
    sostituita da un singolo trattino.

    Example:
        >>> vendor_slug("Acme Supplies")
        'acme-supplies'
    """
    return _WHITESPACE_RUN.sub("-", vendor_name.lower())


def vendor_name_from_slug(slug: str) -> str:
    """Ricostruisce il nome (minuscolo) del vendor da uno slug."""
    return slug.replace("-", " ")


def vendor_link(app_url: str, vendor_name: str) -> str:
    """Link alla vista in sola lettura del vendor."""
    return f"{app_url.rstrip('/')}/vendor/{quote(vendor_slug(vendor_name), safe='')}"


def document_locator(app_url: str, work_order_id: uuid.UUID) -> str:
    """URL da cui recuperare il documento PDF dell'SPK."""
    return f"{app_url.rstrip('/')}/api/v1/spk/{work_order_id}/document"


def document_artifact_key(work_order_id: uuid.UUID, revision: int) -> str:
    """
    Chiave dell'artefatto PDF per una revisione dell'SPK.

    Basata sull'UUID: il numero SPK non è garantito unico.
    """
    return f"pdfs/{work_order_id}-r{revision}.pdf"


def document_filename(spk_number: str) -> str:
    """Nome file proposto per il download del PDF."""
    return f"spk-{spk_number}.pdf"
