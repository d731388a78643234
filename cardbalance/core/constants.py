from typing import Final, Tuple

# Recognition service endpoints (relative to API_BASE_URL)
SCAN_CARD_PATH: Final[str] = "/scan-card"
REFRESH_BALANCE_PATH: Final[str] = "/refresh-balance"
HEALTH_PATH: Final[str] = "/health"

# Multipart upload
IMAGE_FIELD: Final[str] = "image"
IMAGE_FILENAME: Final[str] = "card_image.jpg"
IMAGE_CONTENT_TYPE: Final[str] = "image/jpeg"
SCAN_FORM_FIELDS: Final[Tuple[Tuple[str, str], ...]] = (
    ("scan_type", "balance_check"),
    ("quality", "high"),
)

# Deadlines
REQUEST_TIMEOUT_S: Final[float] = 10.0
HEALTH_TIMEOUT_S: Final[float] = 5.0

# Cache
STORAGE_KEY: Final[str] = "cardbalance_card_data"
HISTORY_CAP: Final[int] = 5

# Fallback refresh draws a delta in [0, FALLBACK_MAX_DELTA)
FALLBACK_MAX_DELTA: Final[int] = 10
BALANCE_CHECK_DESCRIPTION: Final[str] = "Balance Check"

# Error messages surfaced to the caller
NO_CACHED_DATA_MESSAGE: Final[str] = "No card data found to refresh"
SCAN_FAILED_MESSAGE: Final[str] = "Failed to process card image"
REFRESH_FAILED_MESSAGE: Final[str] = "Failed to refresh balance"
