"""
Configurazione Logging
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)
"""

import logging

from spk_tracker.core.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    """
    Configura il logging root una sola volta all'avvio.

    In debug il logger di SQLAlchemy resta a INFO per mostrare le query.
    """
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    # urllib3 logga ogni connessione dei webhook a DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    if not settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
