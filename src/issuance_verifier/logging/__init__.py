"""Logging configuration for issuance_verifier."""

from issuance_verifier.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
