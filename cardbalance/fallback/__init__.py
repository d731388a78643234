"""Fallback package for synthesized card data."""

from .synthesizer import SENTINEL_CARD_NUMBER, FallbackSynthesizer

__all__ = ["FallbackSynthesizer", "SENTINEL_CARD_NUMBER"]
