"""
Archivio dei documenti generati (PDF SPK)
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

ArtifactStore è il contratto usato dal DocumentService; LocalArtifactStore
salva i file su filesystem e li espone da un URL pubblico configurato.
"""

import logging
import os
import tempfile
from typing import Optional, Protocol

from spk_tracker.core.config import Settings

logger = logging.getLogger(__name__)


class ArtifactStore(Protocol):
    """Archivio chiave → contenuto binario, con locator pubblico."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def put(self, key: str, content: bytes) -> str:
        ...

    def delete(self, key: str) -> None:
        ...

    def locator(self, key: str) -> str:
        ...

    def key_for(self, locator: str) -> Optional[str]:
        ...


class LocalArtifactStore:
    """
    Archivio su filesystem locale.

    Le chiavi sono percorsi relativi (es. pdfs/<uuid>-r2.pdf)
    sotto la cartella `root`. La scrittura avviene su file temporaneo
    seguito da rename, così un lettore non vede mai un file parziale.
    """

    def __init__(self, root: str, base_url: str) -> None:
        self.root = os.path.abspath(root)
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalArtifactStore":
        return cls(settings.artifact_dir, settings.artifact_base_url)

    def _path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if os.path.commonpath([self.root, path]) != self.root:
            raise ValueError(f"Chiave artefatto non valida: {key}")
        return path

    def get(self, key: str) -> Optional[bytes]:
        """Contenuto dell'artefatto, o None se non esiste."""
        path = self._path(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def put(self, key: str, content: bytes) -> str:
        """Salva l'artefatto e ne restituisce il locator pubblico."""
        path = self._path(key)
        directory = os.path.dirname(path)
        os.makedirs(directory, exist_ok=True)
        # Un file temporaneo per ogni scrittore: più put sulla stessa chiave non si intralciano
        with tempfile.NamedTemporaryFile(dir=directory, suffix=".tmp", delete=False) as tmp:
            tmp.write(content)
        try:
            os.replace(tmp.name, path)
        except OSError:
            os.remove(tmp.name)
            raise
        logger.debug("Salvato artefatto %s (%d byte)", key, len(content))
        return self.locator(key)

    def delete(self, key: str) -> None:
        """Elimina l'artefatto; nessun errore se non esiste."""
        try:
            os.remove(self._path(key))
            logger.debug("Eliminato artefatto %s", key)
        except FileNotFoundError:
            pass

    def locator(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def key_for(self, locator: str) -> Optional[str]:
        """Chiave corrispondente a un locator prodotto da questo archivio."""
        prefix = f"{self.base_url}/"
        if locator and locator.startswith(prefix):
            return locator[len(prefix):]
        return None
