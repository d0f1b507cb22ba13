"""Version information for issuance_verifier."""

__version__ = "0.1.0"
