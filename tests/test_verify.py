from __future__ import annotations

import copy

import pytest

from luachunk import check_chunk, decode
from luachunk.model import LocalVarDebugEntry, UpValueDescriptor
from luachunk.verify import ConsistencyIssue, check_prototype


@pytest.fixture
def sample(sample_chunk_bytes: bytes):
    return decode(sample_chunk_bytes)


def test_sample_chunk_is_consistent(sample) -> None:
    assert check_chunk(sample) == []


def test_main_upvalue_mismatch(sample) -> None:
    sample.main_upvalue_count = 3
    issues = check_chunk(sample)
    assert len(issues) == 1
    assert issues[0].path == "root"
    assert "3 main upvalues" in issues[0].message


@pytest.mark.parametrize(
    "mutate,fragment",
    [
        (lambda p: p.line_info.append(9), "line_info has 4 entries"),
        (lambda p: p.upvalue_names.append("extra"), "2 upvalue names for 1 upvalues"),
        (lambda p: p.local_vars.append(LocalVarDebugEntry("y", 2, 1)), "ends before it starts"),
        (lambda p: p.local_vars.append(LocalVarDebugEntry("z", 0, 9)), "past the last instruction"),
        (lambda p: setattr(p, "num_params", 5), "exceed max stack size"),
        (lambda p: p.upvalues.__setitem__(0, UpValueDescriptor(2, 0)), "in_stack flag 2"),
        (lambda p: p.constants.clear(), "LOADK references missing constant 0"),
        (lambda p: p.children.clear(), "CLOSURE references missing function 0"),
    ],
)
def test_each_issue_is_reported(sample, mutate, fragment: str) -> None:
    root = copy.deepcopy(sample.root)
    mutate(root)
    issues = check_prototype(root)
    assert any(fragment in issue.message for issue in issues), issues


def test_issues_carry_prototype_path(sample) -> None:
    sample.root.children[0].line_info.clear()
    sample.root.children[0].line_info.extend([1, 2])
    issues = check_chunk(sample)
    assert [issue.path for issue in issues] == ["root/0"]
    assert str(issues[0]).startswith("root/0: ")


def test_stripped_prototype_is_not_flagged(sample) -> None:
    for _, proto in sample.root.walk():
        proto.line_info.clear()
        proto.local_vars.clear()
        proto.upvalue_names.clear()
    assert check_chunk(sample) == []


def test_issue_serialisation() -> None:
    issue = ConsistencyIssue("root/1", "bad")
    assert issue.as_dict() == {"path": "root/1", "message": "bad"}
