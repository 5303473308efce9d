"""Unit tests for Helipad payload normalization."""

import pytest
from pydantic import ValidationError

from boostbot.helipad import HelipadWebhookPayload, normalize_payment, parse_tlv


class TestParseTlv:
    """Test TLV decoding."""

    def test_json_string(self):
        """Test a JSON encoded TLV is decoded."""
        assert parse_tlv('{"feedID": 1, "app_name": "Fountain"}') == {"feedID": 1, "app_name": "Fountain"}

    def test_dict_passthrough(self):
        """Test an already decoded TLV is returned as is."""
        tlv = {"feedID": 2}
        assert parse_tlv(tlv) is tlv

    @pytest.mark.parametrize("tlv", [None, "", "not json", "[1, 2]", "42"])
    def test_unusable_values(self, tlv):
        """Test absent, invalid and non-object TLVs become empty metadata."""
        assert parse_tlv(tlv) == {}


class TestNormalizePayment:
    """Test webhook payload to split event conversion."""

    def test_full_payload(self, sample_helipad_payload):
        """Test every field is carried into the event."""
        event = normalize_payment(HelipadWebhookPayload(**sample_helipad_payload))

        assert event.timestamp_seconds == 1_700_000_000
        assert event.amount_msat == 4_000_000
        assert event.total_amount_msat == 5_000_000
        assert event.sats == 5000
        assert event.split_sats == 4000
        assert event.sender_label == "ChadF"
        assert event.show_name == "Test Show"
        assert event.episode_name == "Episode 1"
        assert event.message == "Great episode!"
        assert event.app == "Fountain"
        assert event.fee_msat == 12
        assert event.has_fee is True
        assert event.payment_hash == "ab" * 32
        assert event.index == 1234
        assert event.metadata["feedID"] == 920666

    def test_missing_payment_info(self, sample_helipad_payload):
        """Test splits without payment info have no fee."""
        sample_helipad_payload["payment_info"] = None
        event = normalize_payment(HelipadWebhookPayload(**sample_helipad_payload))

        assert event.fee_msat is None
        assert event.has_fee is False

    def test_zero_fee(self, sample_helipad_payload):
        """Test a zero routing fee does not count as fee-bearing."""
        sample_helipad_payload["payment_info"]["fee_msat"] = 0
        event = normalize_payment(HelipadWebhookPayload(**sample_helipad_payload))

        assert event.has_fee is False

    def test_strips_labels(self, sample_helipad_payload):
        """Test whitespace around key fields is removed."""
        sample_helipad_payload["sender"] = "  ChadF "
        sample_helipad_payload["podcast"] = "Test Show\n"
        sample_helipad_payload["episode"] = None
        event = normalize_payment(HelipadWebhookPayload(**sample_helipad_payload))

        assert event.sender_label == "ChadF"
        assert event.show_name == "Test Show"
        assert event.episode_name == ""

    def test_empty_message_is_none(self, sample_helipad_payload):
        """Test an empty message normalizes to None."""
        sample_helipad_payload["message"] = ""
        event = normalize_payment(HelipadWebhookPayload(**sample_helipad_payload))

        assert event.message is None

    def test_music_boost(self, sample_helipad_payload):
        """Test remote track fields mark a music boost."""
        sample_helipad_payload["remote_podcast"] = "Some Album"
        sample_helipad_payload["remote_episode"] = "Some Track"
        event = normalize_payment(HelipadWebhookPayload(**sample_helipad_payload))

        assert event.is_music is True

    def test_required_fields(self, sample_helipad_payload):
        """Test payloads missing amounts are rejected."""
        del sample_helipad_payload["value_msat_total"]
        with pytest.raises(ValidationError):
            HelipadWebhookPayload(**sample_helipad_payload)

    def test_event_round_trip(self, sample_helipad_payload):
        """Test events survive the snapshot dict form."""
        from boostbot.helipad import PaymentSplitEvent

        event = normalize_payment(HelipadWebhookPayload(**sample_helipad_payload))
        data = event.to_dict()
        data["unknown_field"] = "ignored"

        assert PaymentSplitEvent.from_dict(data) == event
