"""
==============================================================================
Settings Tests
==============================================================================

Tests for configuration validation of the codec settings.

==============================================================================
"""

import pytest
from pydantic import ValidationError

from viewfinder.config import Settings


class TestDecodeFormats:
    """Tests for the decode format allow-list setting."""

    def test_default_means_all_formats(self):
        assert Settings().decode_format_names == []

    def test_names_normalized(self):
        settings = Settings(decode_formats='["qr_code", " ean_13"]')
        assert settings.decode_format_names == ["QR_CODE", "EAN_13"]

    @pytest.mark.parametrize("value", ['["NOPE"]', '["QR_CODE", "QR"]'])
    def test_unknown_format_rejected(self, value):
        with pytest.raises(ValidationError) as exc:
            Settings(decode_formats=value)
        assert "Unsupported decode formats" in str(exc.value)

    @pytest.mark.parametrize("value", ["QR_CODE", '{"formats": []}'])
    def test_not_a_json_array(self, value):
        with pytest.raises(ValidationError):
            Settings(decode_formats=value)


class TestCharacterSet:
    """Tests for the codec character set setting."""

    def test_alias_normalized(self):
        assert Settings(character_set="UTF8").character_set == "utf-8"

    def test_unknown_character_set(self):
        with pytest.raises(ValidationError) as exc:
            Settings(character_set="klingon")
        assert "Unknown character set" in str(exc.value)
