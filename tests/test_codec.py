"""Tests for record and key encoding."""

import math

import pytest

from srcweb_store.codec import decode_key, decode_record, encode_key, encode_record, is_valid_key


class TestRecordEncoding:
    """Tests for JSON record encoding."""

    def test_bytes_survive(self):
        """Test that binary values come back as bytes."""
        record = {"url": "https://example.com/a.png", "blob": b"\x00\xffPNG"}

        decoded = decode_record(encode_record(record))

        assert decoded == record
        assert isinstance(decoded["blob"], bytes)

    def test_nested_bytes(self):
        """Test that binary values nested in lists and dicts are preserved."""
        record = {"parts": [{"data": bytearray(b"ab")}, b"cd"]}

        decoded = decode_record(encode_record(record))

        assert decoded == {"parts": [{"data": b"ab"}, b"cd"]}

    def test_tag_lookalike_dict(self):
        """Test that a user dict shaped like a bytes tag stays a dict."""
        record = {"value": {"$bytes": "not base64"}}

        assert decode_record(encode_record(record)) == record

    def test_tuples_become_lists(self):
        """Test that tuples are stored as JSON arrays."""
        assert decode_record(encode_record({"pair": (1, 2)})) == {"pair": [1, 2]}

    def test_non_ascii_text(self):
        """Test that non-ASCII text is kept verbatim."""
        record = {"title": "ガンダム"}

        assert "ガンダム" in encode_record(record)
        assert decode_record(encode_record(record)) == record

    def test_nan_rejected(self):
        """Test that NaN cannot be stored."""
        with pytest.raises(ValueError):
            encode_record({"progress": math.nan})

    def test_unserializable_value(self):
        """Test that arbitrary objects are rejected."""
        with pytest.raises(TypeError):
            encode_record({"value": object()})


class TestKeyEncoding:
    """Tests for key validation and encoding."""

    @pytest.mark.parametrize("key", ["s1", "", 0, 42, -1.5])
    def test_valid_keys(self, key):
        """Test values accepted as keys."""
        assert is_valid_key(key)

    @pytest.mark.parametrize("key", [None, True, [], {}, b"x", math.nan, math.inf])
    def test_invalid_keys(self, key):
        """Test values rejected as keys."""
        assert not is_valid_key(key)

    def test_compound_key(self):
        """Test that compound keys decode to tuples."""
        encoded = encode_key(("s1", "slot1"))

        assert encoded == '["s1","slot1"]'
        assert decode_key(encoded) == ("s1", "slot1")

    def test_whole_number_float_key(self):
        """Test that whole-number floats encode like the equal int."""
        assert encode_key(1.0) == encode_key(1)
        assert encode_key(("s1", 2.0)) == encode_key(("s1", 2))
        assert encode_key(1.5) != encode_key(1)

    def test_list_and_tuple_encode_alike(self):
        """Test that list and tuple keys are interchangeable."""
        assert encode_key(["s1", 2]) == encode_key(("s1", 2))

    def test_string_and_number_keys_differ(self):
        """Test that '1' and 1 are distinct keys."""
        assert encode_key("1") != encode_key(1)

    def test_invalid_key_part(self):
        """Test that compound keys with invalid parts are rejected."""
        with pytest.raises(TypeError):
            encode_key(("s1", None))

    def test_empty_compound_key(self):
        with pytest.raises(TypeError):
            encode_key(())
