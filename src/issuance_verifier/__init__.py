"""issuance_verifier: wait for cert-manager reconciliation and verify issued certificates."""

from issuance_verifier.__version__ import __version__

__all__ = ["__version__"]
