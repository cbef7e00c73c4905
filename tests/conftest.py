"""Shared fixtures and helpers for tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).parent.parent

SAMPLE_IDL = """
namespace x a.b.c

include "a.thrift"

struct GetDataReq {
    // 这是单行注释
    // 这也是单行注释
    1: string parameters
    /* 这是多行注释 */
    2: i32 status (api.query="query_status")
    3: double money
    3: bool is_ok
    2: optional map<a.A, string> kvs
    3: required list<a.A> a_list
    6: ItemType item_type
}

struct GetDataRes {
    1: i32 status (api.body="body_status")
    2: string msg
}

enum ItemType {
    // 未知
    Unknown = 0
    // 普通
    Normal = 1
    // 特别
    Special = 2
}

service ThriftService {
    // 获取数据
    GetDataRes GetData(1: GetDataReq req) (api.get = "/api/get-data", other = "something")
}
"""


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_idl() -> str:
    return SAMPLE_IDL


@pytest.fixture
def src_root(tmp_path: Path) -> Path:
    root = tmp_path / "idl"
    root.mkdir()
    return root


@pytest.fixture
def out_root(tmp_path: Path) -> Path:
    return tmp_path / "gen"


@pytest.fixture
def write_idl(src_root: Path) -> Callable[[str, str], Path]:
    """Write an IDL file below the source root and return its path."""

    def _write(relative: str, source: str) -> Path:
        path = src_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _write
