import pytest

from fixtures.chunk_fixture import cstr, u32
from luachunk.cursor import ByteCursor
from luachunk.debuginfo import read_debug_info, read_local_vars, read_u32_array
from luachunk.exceptions import TruncatedInputError
from luachunk.layouts import get_layout
from luachunk.model import LocalVarDebugEntry

CSTRING = get_layout("cstring")


def test_stripped_debug_info_is_three_zero_counts() -> None:
    cursor = ByteCursor(u32(0) * 3)
    assert read_debug_info(cursor, CSTRING) == ([], [], [])
    assert cursor.at_end


def test_full_debug_info() -> None:
    data = (
        u32(3) + u32(1) + u32(1) + u32(2)
        + u32(2) + cstr("a") + u32(0) + u32(3) + cstr("b") + u32(1) + u32(2)
        + u32(1) + cstr("_ENV")
    )
    cursor = ByteCursor(data)
    line_info, local_vars, upvalue_names = read_debug_info(cursor, CSTRING)
    assert line_info == [1, 1, 2]
    assert local_vars == [LocalVarDebugEntry("a", 0, 3), LocalVarDebugEntry("b", 1, 2)]
    assert upvalue_names == ["_ENV"]
    assert cursor.at_end


def test_line_info_is_not_checked_against_code_size() -> None:
    # Ten entries are accepted regardless of how many instructions exist.
    cursor = ByteCursor(u32(10) + b"".join(u32(i) for i in range(10)))
    assert read_u32_array(cursor) == list(range(10))


def test_truncated_local_vars() -> None:
    data = u32(2) + cstr("a") + u32(0) + u32(3) + cstr("b") + u32(1)
    with pytest.raises(TruncatedInputError):
        read_local_vars(ByteCursor(data), CSTRING)


def test_huge_count_fails_fast() -> None:
    with pytest.raises(TruncatedInputError) as excinfo:
        read_u32_array(ByteCursor(u32(0xFFFFFFFF) + u32(1)))
    assert excinfo.value.offset == 4
