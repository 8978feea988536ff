"""Tests for error envelope decoding."""

import pytest

from dynaclient.envelope import LegacyEnvelope, VersionedEnvelope, decode_envelope
from dynaclient.errors import EnvelopeDecodeError


class TestDecodeEnvelope:
    """Both wire shapes, detected from the fields present."""

    def test_legacy(self):
        envelope = decode_envelope('{"errors":[{"errorMessage":"Pet not found","status":"404"}]}')
        assert isinstance(envelope, LegacyEnvelope)
        assert envelope.first.error_message == "Pet not found"
        assert envelope.first.status == "404"
        assert envelope.message == "Pet not found"
        assert envelope.code == "404"
        assert envelope.identifier is None

    def test_versioned(self):
        envelope = decode_envelope(
            '{"id":"req-123","errors":[{"detail":"Invalid category","code":"VALIDATION_ERROR"}]}'
        )
        assert isinstance(envelope, VersionedEnvelope)
        assert envelope.identifier == "req-123"
        assert envelope.first.detail == "Invalid category"
        assert envelope.first.code == "VALIDATION_ERROR"
        assert envelope.message == "Invalid category"

    def test_numeric_status_is_text(self):
        envelope = decode_envelope(b'{"errors":[{"errorMessage":"gone","status":410}]}')
        assert envelope.code == "410"

    def test_unknown_fields_ignored(self):
        envelope = decode_envelope(
            '{"id":"r","trace":"t","errors":[{"detail":"d","code":"c","field":"f"},{"detail":"e","code":"g"}]}'
        )
        assert envelope.code == "c"
        assert len(envelope.errors) == 2

    def test_fields_never_conflated(self):
        """A versioned body is not readable through the legacy field names."""
        envelope = decode_envelope('{"id":"r","errors":[{"detail":"d","code":"c"}]}')
        assert not hasattr(envelope.first, "error_message")


class TestDecodeFailures:
    @pytest.mark.parametrize("body", [None, "", "   ", b""])
    def test_empty(self, body):
        with pytest.raises(EnvelopeDecodeError, match="no body"):
            decode_envelope(body)

    def test_not_json(self):
        with pytest.raises(EnvelopeDecodeError, match="not JSON") as exc_info:
            decode_envelope("<html>Not Found</html>")
        assert exc_info.value.body == "<html>Not Found</html>"

    def test_not_object(self):
        with pytest.raises(EnvelopeDecodeError, match="not a JSON object"):
            decode_envelope("[1, 2]")

    @pytest.mark.parametrize("body", [
        '{"message": "nope"}',
        '{"errors": []}',
        '{"errors": [{"something": "else"}]}',
    ])
    def test_unknown_shape(self, body):
        with pytest.raises(EnvelopeDecodeError, match="no known error envelope"):
            decode_envelope(body)

    def test_missing_required_field(self):
        with pytest.raises(EnvelopeDecodeError, match="Invalid VersionedEnvelope"):
            decode_envelope('{"errors":[{"detail":"d","code":"c"}]}')
