"""Tests for archguard.lang.codeset: tree-sitter code set import."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from archguard.errors import CodeImportError
from archguard.lang.codeset import (
    CallSite,
    import_code_set,
    in_scope,
    module_name_for,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestImportCodeSet:
    """Importing the sample project."""

    def test_all_classes_in_file_order(self, sample_project: Path) -> None:
        code_set = import_code_set(sample_project)
        assert [c.full_name for c in code_set] == [
            "shop.domain.model.Order",
            "shop.domain.model.Order.Line",
            "shop.service.OrderService",
            "shop.service.IRepository",
        ]

    def test_scope_restricts_modules(self, sample_project: Path) -> None:
        code_set = import_code_set(sample_project, "shop.domain")
        assert [c.qualname for c in code_set] == ["Order", "Order.Line"]
        assert code_set.scope == "shop.domain"

    def test_scope_accepts_slashes(self, sample_project: Path) -> None:
        code_set = import_code_set(sample_project, "shop/domain/")
        assert len(code_set) == 2

    def test_scope_is_not_a_string_prefix(self, sample_project: Path) -> None:
        assert len(import_code_set(sample_project, "shop.dom")) == 0

    def test_class_details(self, sample_project: Path) -> None:
        code_set = import_code_set(sample_project)
        service = code_set.get("shop.service.OrderService")
        assert service is not None
        assert service.methods == ("place",)
        assert service.attributes == ("registry",)
        assert service.line_number == 10
        assert service.imports == ("logging", "sys", "abc", "shop.domain.model")
        assert service.calls == (
            CallSite(target="print", line_number=14),
            CallSite(target="sys.stdout.write", line_number=15),
        )

    def test_bases_and_decorators_are_resolved(self, sample_project: Path) -> None:
        code_set = import_code_set(sample_project)
        repo = code_set.get("shop.service.IRepository")
        order = code_set.get("shop.domain.model.Order")
        assert repo is not None
        assert order is not None
        assert repo.bases == ("abc.ABC",)
        assert repo.methods == ("save",)
        assert order.decorators == ("dataclasses.dataclass",)
        assert order.attributes == ("id",)

    def test_nested_class_owns_its_calls(self, sample_project: Path) -> None:
        code_set = import_code_set(sample_project)
        order = code_set.get("shop.domain.model.Order")
        line = code_set.get("shop.domain.model.Order.Line")
        assert order is not None
        assert line is not None
        assert order.calls == ()
        assert [c.target for c in line.calls] == ["requests.get"]

    def test_relative_imports(self, tmp_path: Path) -> None:
        pkg = tmp_path / "pkg" / "sub"
        pkg.mkdir(parents=True)
        (tmp_path / "pkg" / "__init__.py").write_text("")
        (pkg / "__init__.py").write_text("")
        (pkg / "mod.py").write_text(
            "from .helpers import tool\n"
            "from ..core import base\n"
            "from . import sibling\n"
            "\n"
            "class Thing:\n"
            "    def run(self):\n"
            "        tool()\n"
            "        sibling.go()\n"
        )
        thing = import_code_set(tmp_path).get("pkg.sub.mod.Thing")
        assert thing is not None
        assert thing.imports == ("pkg.sub.helpers", "pkg.core", "pkg.sub")
        assert [c.target for c in thing.calls] == ["pkg.sub.helpers.tool", "pkg.sub.sibling.go"]

    def test_skips_hidden_and_cache_dirs(self, tmp_path: Path) -> None:
        (tmp_path / ".venv").mkdir()
        (tmp_path / ".venv" / "lib.py").write_text("class Hidden: pass\n")
        (tmp_path / "__pycache__").mkdir()
        (tmp_path / "__pycache__" / "x.py").write_text("class Cached: pass\n")
        (tmp_path / "app.py").write_text("class Visible: pass\n")
        assert [c.name for c in import_code_set(tmp_path)] == ["Visible"]

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "empty.py").write_text("\n")
        assert len(import_code_set(tmp_path)) == 0

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(CodeImportError, match="not a directory"):
            import_code_set(tmp_path / "missing")

    def test_repeated_imports_are_equal(self, sample_project: Path) -> None:
        assert import_code_set(sample_project) == import_code_set(sample_project)


class TestModuleNames:
    def test_module_name_for(self, tmp_path: Path) -> None:
        assert module_name_for(tmp_path / "a" / "b.py", tmp_path) == "a.b"
        assert module_name_for(tmp_path / "a" / "__init__.py", tmp_path) == "a"

    @pytest.mark.parametrize(
        ("module", "scope", "expected"),
        [
            ("a.b", "", True),
            ("a.b", "a", True),
            ("a", "a", True),
            ("ab", "a", False),
            ("a", "a.b", False),
        ],
    )
    def test_in_scope(self, module: str, scope: str, expected: bool) -> None:
        assert in_scope(module, scope) is expected
