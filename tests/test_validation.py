"""Tests for local argument validation."""

import io

import pytest

from fssclient.errors import InvalidArgument, InvalidPayloadError, ValidationError
from fssclient.validation import prepare_payload, validate_expires, validate_object_key


async def _drain(stream) -> bytes:
    return b"".join([chunk async for chunk in stream])


class TestValidateObjectKey:
    """Tests for validate_object_key()."""

    def test_valid_simple(self):
        validate_object_key("a.txt")

    def test_valid_nested(self):
        validate_object_key("dir/sub/a.txt")

    def test_valid_1024_bytes(self):
        """Maximum key length (1024 bytes) is accepted."""
        validate_object_key("k" * 1024)

    def test_empty(self):
        with pytest.raises(InvalidArgument):
            validate_object_key("")

    def test_too_long(self):
        with pytest.raises(InvalidArgument):
            validate_object_key("k" * 1025)

    def test_length_counted_in_utf8_bytes(self):
        """Multi-byte characters count by their encoded size."""
        with pytest.raises(InvalidArgument):
            validate_object_key("é" * 513)

    def test_not_a_string(self):
        with pytest.raises(InvalidArgument):
            validate_object_key(None)  # type: ignore[arg-type]


class TestPreparePayload:
    """Tests for prepare_payload()."""

    # -- Buffers ----------------------------------------------------------------

    def test_bytes(self):
        assert prepare_payload(b"hello") == (b"hello", 5)

    def test_bytearray(self):
        assert prepare_payload(bytearray(b"abc")) == (b"abc", 3)

    def test_memoryview(self):
        assert prepare_payload(memoryview(b"abcd")) == (b"abcd", 4)

    def test_empty_bytes(self):
        assert prepare_payload(b"") == (b"", 0)

    # -- Streams ----------------------------------------------------------------

    async def test_async_iterable_passed_through(self):
        async def chunks():
            yield b"ab"
            yield b"cd"

        source = chunks()
        content, length = prepare_payload(source)
        assert content is source
        assert length is None

    async def test_binary_file(self):
        content, length = prepare_payload(io.BytesIO(b"x" * 100_000))
        assert length is None
        assert await _drain(content) == b"x" * 100_000

    async def test_iterable_of_bytes(self):
        content, length = prepare_payload([b"a", bytearray(b"b")])
        assert length is None
        assert await _drain(content) == b"ab"

    def test_list_with_text_chunk(self):
        """Every element of a list is checked before anything is streamed."""
        with pytest.raises(InvalidPayloadError):
            prepare_payload([b"a", "b"])

    def test_tuple_of_text(self):
        with pytest.raises(InvalidPayloadError):
            prepare_payload(("abc", "def"))

    def test_generator_with_text_first_chunk(self):
        with pytest.raises(InvalidPayloadError):
            prepare_payload(chunk for chunk in ["abc", "def"])

    async def test_generator_first_chunk_kept(self):
        """The chunk inspected up front is still sent, ahead of the rest."""
        content, length = prepare_payload(chunk for chunk in [b"ab", b"cd", b"ef"])
        assert length is None
        assert await _drain(content) == b"abcdef"

    async def test_empty_generator(self):
        content, _ = prepare_payload(chunk for chunk in [])
        assert await _drain(content) == b""

    async def test_generator_with_late_text_chunk(self):
        """Chunks after the first of a one-shot iterator are checked while streaming."""
        content, _ = prepare_payload(chunk for chunk in [b"a", "b"])
        with pytest.raises(InvalidPayloadError):
            await _drain(content)

    # -- Rejected ---------------------------------------------------------------

    @pytest.mark.parametrize(
        "payload",
        ["text", 42, 4.2, None, {"a": b"b"}, io.StringIO("text"), object()],
    )
    def test_rejected(self, payload):
        with pytest.raises(InvalidPayloadError):
            prepare_payload(payload)

    def test_error_names_type(self):
        with pytest.raises(InvalidPayloadError, match="got int"):
            prepare_payload(42)

    def test_payload_error_is_validation_error(self):
        assert issubclass(InvalidPayloadError, ValidationError)


class TestValidateExpires:
    """Tests for validate_expires()."""

    def test_valid(self):
        assert validate_expires(60) == 60

    @pytest.mark.parametrize("value", [0, -5])
    def test_not_positive(self, value):
        with pytest.raises(InvalidArgument):
            validate_expires(value)

    @pytest.mark.parametrize("value", [True, 1.5, "60", None])
    def test_not_an_integer(self, value):
        with pytest.raises(InvalidArgument):
            validate_expires(value)
