"""var2tmpfiles - translate /var content into systemd tmpfiles.d entries."""

__version__ = "0.1.0"
