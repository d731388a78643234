"""
Input validation and sanitization utilities for the card balance client.

Image handles, card numbers and balances arrive from the UI collaborator or
from the remote service; these helpers normalize them or raise
ConfigurationError before they reach the network or the cache.
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Union

from .error_handler import ConfigurationError


def validate_image_path(image_path: Union[str, Path]) -> Path:
    """
    Validate that an image path points at a readable, non-empty file.

    Args:
        image_path: Path to the card image

    Returns:
        Resolved Path object

    Raises:
        ConfigurationError: If the path is missing, not a file, or empty
    """
    path = Path(image_path)

    if not path.exists():
        raise ConfigurationError(
            f"Image file does not exist: {path}",
            details={"image_path": str(path)}
        )

    if not path.is_file():
        raise ConfigurationError(
            f"Image path is not a file: {path}",
            details={"image_path": str(path)}
        )

    if path.stat().st_size == 0:
        raise ConfigurationError(
            f"Image file is empty: {path}",
            details={"image_path": str(path)}
        )

    return path.resolve()


def load_image_bytes(image: Union[str, Path, bytes, bytearray]) -> bytes:
    """Return the raw bytes for an image handle (path or in-memory bytes)."""
    if isinstance(image, (bytes, bytearray)):
        if not image:
            raise ConfigurationError("Image data is empty")
        return bytes(image)

    if isinstance(image, (str, Path)):
        path = validate_image_path(image)
        try:
            return path.read_bytes()
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read image file: {path}",
                details={"image_path": str(path), "error": str(e)}
            ) from e

    raise ConfigurationError(
        f"Unsupported image handle type: {type(image).__name__}",
        details={"type": type(image).__name__}
    )


def validate_card_number(card_number: str) -> str:
    """
    Check a card number before the refresh call.

    The number is an opaque identifier and is sent exactly as the service
    reported it; only surrounding whitespace is removed.
    """
    if not isinstance(card_number, str):
        raise ConfigurationError(
            "Card number must be a string",
            details={"type": type(card_number).__name__}
        )

    number = card_number.strip()
    if not number:
        raise ConfigurationError("Card number is empty")

    return number


def mask_card_number(card_number: str) -> str:
    """Mask all but the last four characters: ``**** **** **** 3456``."""
    return f"**** **** **** {card_number[-4:]}"


def parse_balance(balance: str) -> Decimal:
    """Parse a decimal balance string, raising ConfigurationError if it is not one."""
    try:
        value = Decimal(str(balance).strip())
    except (InvalidOperation, ValueError) as e:
        raise ConfigurationError(
            f"Invalid balance: {balance!r}",
            details={"balance": balance}
        ) from e

    if not value.is_finite():
        raise ConfigurationError(
            f"Invalid balance: {balance!r}",
            details={"balance": balance}
        )

    return value
