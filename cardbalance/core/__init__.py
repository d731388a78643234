"""Core data types and constants."""

from .types import FALLBACK, LIVE, CardData, Envelope, Provenance, Transaction

__all__ = ["CardData", "Transaction", "Envelope", "Provenance", "LIVE", "FALLBACK"]
