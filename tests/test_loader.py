import logging

import pytest

from fixtures.chunk_fixture import (
    PLATFORM_DATA_OFFSET,
    SENTINEL_INTEGER_OFFSET,
    SENTINEL_NUMBER_OFFSET,
    chunk,
    cstr,
    prototype,
    sized,
    string_constant,
)
from luachunk import (
    ChunkDecodeError,
    LayoutError,
    MalformedHeaderError,
    TruncatedInputError,
    UnknownConstantTagError,
    decode,
    load_file,
)
from luachunk.model import Header


def test_decode_sample_chunk(sample_chunk_bytes: bytes) -> None:
    result = decode(sample_chunk_bytes)
    assert result.header == Header()
    assert result.main_upvalue_count == 1
    assert result.root.source == "@sample.lua"
    assert len(result.root.children) == 1
    assert result.prototype_count() == 2


def test_decode_accepts_bytearray_and_memoryview(sample_chunk_bytes: bytes) -> None:
    expected = decode(sample_chunk_bytes)
    assert decode(bytearray(sample_chunk_bytes)) == expected
    assert decode(memoryview(sample_chunk_bytes)) == expected


def test_every_truncation_is_reported(sample_chunk_bytes: bytes) -> None:
    for length in range(len(sample_chunk_bytes)):
        with pytest.raises(TruncatedInputError):
            decode(sample_chunk_bytes[:length])


def test_truncation_offsets_never_exceed_buffer(sample_chunk_bytes: bytes) -> None:
    for length in range(0, len(sample_chunk_bytes), 7):
        with pytest.raises(TruncatedInputError) as excinfo:
            decode(sample_chunk_bytes[:length])
        assert 0 <= excinfo.value.offset <= length


@pytest.mark.parametrize(
    "offset",
    [PLATFORM_DATA_OFFSET + i for i in range(6)]
    + [SENTINEL_NUMBER_OFFSET, SENTINEL_NUMBER_OFFSET + 7, SENTINEL_INTEGER_OFFSET],
)
def test_header_mutations_never_succeed(sample_chunk_bytes: bytes, offset: int) -> None:
    data = bytearray(sample_chunk_bytes)
    data[offset] ^= 0x20
    with pytest.raises(MalformedHeaderError):
        decode(bytes(data))


def test_unknown_tag_inside_nested_prototype() -> None:
    bad_child = prototype("", constants=(b"\x02",))
    data = chunk(prototype("@main.lua", children=(bad_child,)))
    with pytest.raises(UnknownConstantTagError) as excinfo:
        decode(data)
    assert data[excinfo.value.offset] == 0x02


def test_trailing_bytes_are_logged(sample_chunk_bytes: bytes, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="luachunk.loader"):
        result = decode(sample_chunk_bytes + b"\x00\x00")
    assert result == decode(sample_chunk_bytes)
    assert "2 trailing byte(s)" in caplog.text


def test_lua53_layout_end_to_end() -> None:
    child = prototype("", encode=lambda value: sized(value, absent=not value))
    root = prototype(
        "@main.lua",
        constants=(string_constant("k", encode=sized),),
        children=(child,),
        local_vars=(("v", 0, 0),),
        encode=lambda value: sized(value, absent=not value),
    )
    result = decode(chunk(root, layout="lua53"), layout="lua53")
    assert result.root.constants[0].value == "k"
    assert result.root.children[0].source == "@main.lua"
    assert result.root.children[0].source_inherited
    assert result.root.local_vars[0].name == "v"


def test_cstring_chunk_rejected_by_lua53_layout(sample_chunk_bytes: bytes) -> None:
    with pytest.raises(ChunkDecodeError):
        decode(sample_chunk_bytes, layout="lua53")


def test_unknown_layout_name(sample_chunk_bytes: bytes) -> None:
    with pytest.raises(LayoutError):
        decode(sample_chunk_bytes, layout="lua51")


def test_load_file(chunk_file) -> None:
    assert load_file(chunk_file).root.source == "@sample.lua"


def test_load_missing_file(tmp_path) -> None:
    with pytest.raises(OSError):
        load_file(tmp_path / "missing.luac")


def test_decodes_are_independent(sample_chunk_bytes: bytes) -> None:
    first = decode(sample_chunk_bytes)
    second = decode(sample_chunk_bytes)
    assert first == second
    assert first.root is not second.root
    first.root.children.clear()
    assert len(second.root.children) == 1


def test_string_with_multibyte_characters() -> None:
    data = chunk(prototype("@main.lua", constants=(string_constant("héllo ✓"),)), main_upvalues=0)
    assert decode(data).root.constants[0].value == "héllo ✓"


def test_minimal_chunk_has_exact_size() -> None:
    data = chunk(prototype(""), main_upvalues=0)
    assert len(data) == 33 + 1 + len(cstr("")) + 8 + 3 + 4 * 7
    assert decode(data).root.instructions == []


def test_every_truncation_of_a_lua53_chunk_is_reported() -> None:
    long_text = "y" * 300
    child = prototype(
        "",
        constants=(string_constant("inner", encode=sized),),
        encode=lambda value: sized(value, absent=not value),
    )
    root = prototype(
        "@main.lua",
        constants=(string_constant(long_text, encode=sized, long=True),),
        children=(child,),
        upvalue_names=("_ENV",),
        upvalues=((1, 0),),
        encode=sized,
    )
    data = chunk(root, layout="lua53")
    assert decode(data, layout="lua53").root.constants[0].value == long_text
    for length in range(len(data)):
        with pytest.raises(TruncatedInputError) as excinfo:
            decode(data[:length], layout="lua53")
        assert 0 <= excinfo.value.offset <= length
