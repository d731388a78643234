"""Tests for card data types and their JSON shape."""

import pytest

from cardbalance.core.types import CardData, Envelope, Transaction
from cardbalance.utils.error_handler import InvalidResponseError


class TestCardData:
    """Test CardData (de)serialization."""

    def test_from_dict_reads_camel_case_fields(self, sample_card_payload):
        """Test parsing a service payload."""
        card = CardData.from_dict(sample_card_payload)

        assert card.card_number == "4000123412349876"
        assert card.balance == "120.00"
        assert card.card_type == "Visa"
        assert card.card_holder == "Jane Doe"
        assert card.expiry_date == "08/27"
        assert card.issuer == "Example Bank"
        assert card.last_transactions == [
            Transaction(id="a", description="Groceries", amount=-32.1, date="2024-02-29T18:00:00.000Z")
        ]

    def test_to_dict_matches_service_payload(self, sample_card_payload):
        """Test that serializing gives back the payload we parsed."""
        assert CardData.from_dict(sample_card_payload).to_dict() == sample_card_payload

    def test_optional_fields_default_to_none(self):
        """Test a minimal payload."""
        card = CardData.from_dict({"cardNumber": "9999", "balance": "1.00"})

        assert card.card_type is None
        assert card.issuer is None
        assert card.last_transactions == []
        assert card.to_dict() == {"cardNumber": "9999", "balance": "1.00", "lastTransactions": []}

    def test_numeric_balance_is_kept_as_string(self):
        """Test that a numeric balance from the wire becomes a string."""
        card = CardData.from_dict({"cardNumber": "9999", "balance": 12.5})
        assert card.balance == "12.5"

    @pytest.mark.parametrize("payload", [
        {"balance": "1.00"},
        {"cardNumber": "1234"},
        {"cardNumber": None, "balance": "1.00"},
    ])
    def test_missing_required_fields(self, payload):
        """Test that cardNumber and balance are required."""
        with pytest.raises(InvalidResponseError):
            CardData.from_dict(payload)

    def test_non_object_payload(self):
        """Test that a non-object payload is rejected."""
        with pytest.raises(InvalidResponseError):
            CardData.from_dict(["not", "a", "card"])

    def test_malformed_transaction(self):
        """Test that a transaction without an id is rejected."""
        with pytest.raises(InvalidResponseError):
            CardData.from_dict({
                "cardNumber": "1234",
                "balance": "1.00",
                "lastTransactions": [{"description": "x", "amount": 1, "date": ""}],
            })


class TestTransaction:
    """Test Transaction helpers."""

    def test_credit_and_debit(self):
        """Test sign conventions."""
        assert Transaction("1", "Reload", 50.0, "").is_credit
        assert not Transaction("2", "Purchase", -15.99, "").is_credit
        assert not Transaction("3", "Balance Check", 0.0, "").is_credit


class TestEnvelope:
    """Test the result envelope."""

    def test_ok_envelope(self, sample_card):
        """Test a successful live envelope."""
        envelope = Envelope.ok(sample_card)

        assert envelope.success
        assert envelope.data == sample_card
        assert envelope.error is None
        assert envelope.provenance == "live"
        assert not envelope.is_fallback

    def test_fallback_envelope(self, sample_card):
        """Test a fallback envelope carries its provenance."""
        envelope = Envelope.ok(sample_card, "fallback")

        assert envelope.is_fallback
        assert envelope.to_dict()["provenance"] == "fallback"

    def test_fail_envelope(self):
        """Test a failed envelope."""
        envelope = Envelope.fail("No card data found to refresh")

        assert not envelope.success
        assert envelope.data is None
        assert envelope.to_dict() == {"success": False, "error": "No card data found to refresh"}

    def test_envelope_requires_data_or_error(self):
        """Test that exactly one of data/error must be populated."""
        with pytest.raises(ValueError):
            Envelope(success=True)
        with pytest.raises(ValueError):
            Envelope(success=False)

    def test_envelope_rejects_both_data_and_error(self, sample_card):
        """Test that a success never carries an error and a failure never carries data."""
        with pytest.raises(ValueError, match="must not carry an error"):
            Envelope(success=True, data=sample_card, error="x")
        with pytest.raises(ValueError, match="must not carry data"):
            Envelope(success=False, data=sample_card, error="x")
