import struct

import pytest

from luachunk.cursor import ByteCursor
from luachunk.exceptions import InvalidTextError, TruncatedInputError


def test_fixed_width_reads_are_little_endian() -> None:
    cursor = ByteCursor(bytes([0x78, 0x56, 0x34, 0x12]) + (0x0102030405060708).to_bytes(8, "little"))
    assert cursor.read_u32() == 0x12345678
    assert cursor.read_u64() == 0x0102030405060708
    assert cursor.at_end
    assert cursor.position == 12


def test_read_i64_is_signed() -> None:
    cursor = ByteCursor((-42).to_bytes(8, "little", signed=True))
    assert cursor.read_i64() == -42


@pytest.mark.parametrize("value", [370.5, -0.1, 1e300, 2.0 ** -1074, 0.0])
def test_read_f64_reinterprets_bits(value: float) -> None:
    cursor = ByteCursor(struct.pack("<d", value))
    assert cursor.read_f64() == value


def test_read_f64_is_not_a_weighted_byte_sum() -> None:
    # 0.1 has a bit pattern whose byte-weighted sum is an enormous integer.
    cursor = ByteCursor(struct.pack("<d", 0.1))
    assert cursor.read_f64() == 0.1


def test_truncated_read_does_not_advance() -> None:
    cursor = ByteCursor(b"\x01\x02\x03")
    cursor.read_byte()
    with pytest.raises(TruncatedInputError) as excinfo:
        cursor.read_u32()
    assert excinfo.value.offset == 1
    assert excinfo.value.needed == 4
    assert excinfo.value.available == 2
    assert cursor.position == 1


def test_read_byte_at_end_is_truncation() -> None:
    cursor = ByteCursor(b"")
    with pytest.raises(TruncatedInputError):
        cursor.read_byte()


def test_read_bytes_rejects_negative_length() -> None:
    with pytest.raises(ValueError):
        ByteCursor(b"abc").read_bytes(-1)


def test_read_cstring_consumes_terminator() -> None:
    cursor = ByteCursor(b"hello\x00world\x00")
    assert cursor.read_cstring() == "hello"
    assert cursor.position == 6
    assert cursor.read_cstring() == "world"
    assert cursor.at_end


def test_read_cstring_empty() -> None:
    cursor = ByteCursor(b"\x00\x07")
    assert cursor.read_cstring() == ""
    assert cursor.read_byte() == 7


def test_read_cstring_without_terminator_is_truncation() -> None:
    cursor = ByteCursor(b"abc")
    with pytest.raises(TruncatedInputError):
        cursor.read_cstring()
    assert cursor.position == 0


def test_read_cstring_rejects_invalid_utf8() -> None:
    cursor = ByteCursor(b"ok\xff\xfe\x00")
    with pytest.raises(InvalidTextError) as excinfo:
        cursor.read_cstring()
    assert excinfo.value.offset == 0


def test_read_sized_string_variants() -> None:
    long_payload = "x" * 300
    data = (
        b"\x00"
        + b"\x01"
        + b"\x04abc"
        + b"\xff"
        + (len(long_payload) + 1).to_bytes(8, "little")
        + long_payload.encode()
    )
    cursor = ByteCursor(data)
    assert cursor.read_sized_string() is None
    assert cursor.read_sized_string() == ""
    assert cursor.read_sized_string() == "abc"
    assert cursor.read_sized_string() == long_payload
    assert cursor.at_end


def test_read_sized_string_truncation_restores_position() -> None:
    cursor = ByteCursor(b"\x09abc")
    with pytest.raises(TruncatedInputError):
        cursor.read_sized_string()
    assert cursor.position == 0


def test_cursor_requires_buffer() -> None:
    with pytest.raises(TypeError):
        ByteCursor("text")  # type: ignore[arg-type]
