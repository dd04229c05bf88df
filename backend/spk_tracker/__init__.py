"""SPK Tracker - Gestione Surat Perintah Kerja e pagamenti ai vendor."""

__version__ = "1.0.0"
