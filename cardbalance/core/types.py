from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Literal

from ..utils.error_handler import InvalidResponseError

Provenance = Literal["live", "fallback"]

LIVE: Provenance = "live"
FALLBACK: Provenance = "fallback"


@dataclass(frozen=True)
class Transaction:
    id: str
    description: str
    amount: float  # negative = debit, positive = credit
    date: str  # ISO-8601

    @property
    def is_credit(self) -> bool:
        return self.amount > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Transaction":
        try:
            return cls(
                id=str(raw["id"]),
                description=str(raw.get("description", "")),
                amount=float(raw.get("amount", 0)),
                date=str(raw.get("date", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidResponseError(
                "Malformed transaction", details={"transaction": raw, "error": str(e)}
            ) from e


@dataclass(frozen=True)
class CardData:
    card_number: str
    balance: str
    card_type: Optional[str] = None
    card_holder: Optional[str] = None
    expiry_date: Optional[str] = None
    issuer: Optional[str] = None
    last_transactions: List[Transaction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used on the wire and in the cache."""
        data: Dict[str, Any] = {
            "cardNumber": self.card_number,
            "balance": self.balance,
        }
        optional = {
            "cardType": self.card_type,
            "cardHolder": self.card_holder,
            "expiryDate": self.expiry_date,
            "issuer": self.issuer,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        data["lastTransactions"] = [t.to_dict() for t in self.last_transactions]
        return data

    @classmethod
    def from_dict(cls, raw: Any) -> "CardData":
        if not isinstance(raw, dict):
            raise InvalidResponseError(
                "Card data is not an object", details={"type": type(raw).__name__}
            )

        missing = [k for k in ("cardNumber", "balance") if raw.get(k) is None]
        if missing:
            raise InvalidResponseError(
                f"Card data missing fields: {missing}",
                details={"missing_fields": missing, "available_fields": list(raw.keys())}
            )

        transactions = raw.get("lastTransactions") or []
        if not isinstance(transactions, list):
            raise InvalidResponseError("lastTransactions is not a list")

        return cls(
            card_number=str(raw["cardNumber"]),
            balance=str(raw["balance"]),
            card_type=raw.get("cardType"),
            card_holder=raw.get("cardHolder"),
            expiry_date=raw.get("expiryDate"),
            issuer=raw.get("issuer"),
            last_transactions=[Transaction.from_dict(t) for t in transactions],
        )


@dataclass(frozen=True)
class Envelope:
    success: bool
    data: Optional[CardData] = None
    error: Optional[str] = None
    provenance: Optional[Provenance] = None

    def __post_init__(self):
        if self.success and self.data is None:
            raise ValueError("successful envelope requires data")
        if self.success and self.error is not None:
            raise ValueError("successful envelope must not carry an error")
        if not self.success and self.error is None:
            raise ValueError("failed envelope requires an error message")
        if not self.success and self.data is not None:
            raise ValueError("failed envelope must not carry data")

    @classmethod
    def ok(cls, data: CardData, provenance: Provenance = LIVE) -> "Envelope":
        return cls(success=True, data=data, provenance=provenance)

    @classmethod
    def fail(cls, error: str) -> "Envelope":
        return cls(success=False, error=error)

    @property
    def is_fallback(self) -> bool:
        return self.provenance == FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data.to_dict()
        if self.error is not None:
            out["error"] = self.error
        if self.provenance is not None:
            out["provenance"] = self.provenance
        return out
