"""Code set importer: parse a Python source tree with tree-sitter into class records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

from archguard.errors import CodeImportError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)

# Directories never considered part of a code set.
_SKIPPED_DIRS: frozenset[str] = frozenset({"__pycache__", "node_modules", "site-packages"})

_PARSER: Parser | None = None


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CallSite:
    """A call made from inside a class body, with import aliases resolved."""

    target: str  # e.g. "sys.stdout.write" or "print"
    line_number: int  # 1-based


@dataclass(frozen=True)
class CodeClass:
    """A single class found in the analyzed source tree."""

    name: str
    qualname: str  # "Outer.Inner" for nested classes
    module: str
    file_path: str
    line_number: int
    bases: tuple[str, ...]
    decorators: tuple[str, ...]
    methods: tuple[str, ...]
    attributes: tuple[str, ...]  # class-level assignments and annotations
    calls: tuple[CallSite, ...]
    imports: tuple[str, ...]  # every module imported by the containing module

    @property
    def full_name(self) -> str:
        return f"{self.module}.{self.qualname}" if self.module else self.qualname

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.line_number}"


@dataclass(frozen=True)
class CodeSet:
    """Immutable set of classes imported from one root and scope."""

    root: str
    scope: str
    classes: tuple[CodeClass, ...]

    def __iter__(self) -> Iterator[CodeClass]:
        return iter(self.classes)

    def __len__(self) -> int:
        return len(self.classes)

    def get(self, full_name: str) -> CodeClass | None:
        for cls in self.classes:
            if cls.full_name == full_name:
                return cls
        return None


# ---------------------------------------------------------------------------
# Tree-sitter helpers
# ---------------------------------------------------------------------------


def _parser() -> Parser:
    global _PARSER  # noqa: PLW0603
    if _PARSER is None:
        import tree_sitter_python as tspython

        _PARSER = Parser(Language(tspython.language()))
    return _PARSER


def _text(node: TSNode | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def _resolve(dotted: str, aliases: dict[str, str]) -> str:
    """Expand the first segment of *dotted* through the module's import aliases."""
    head, sep, rest = dotted.partition(".")
    if head in aliases:
        return aliases[head] + sep + rest
    return dotted


def _relative_base(module: str, *, is_package: bool, prefix: str) -> str:
    """Return the absolute package a relative import with *prefix* dots points at."""
    package = module if is_package else module.rpartition(".")[0]
    parts = package.split(".") if package else []
    level = len(prefix)
    if level > 1:
        parts = parts[: max(len(parts) - (level - 1), 0)]
    return ".".join(parts)


def _collect_imports(
    root: TSNode, module: str, *, is_package: bool
) -> tuple[list[str], dict[str, str]]:
    """Collect imported module paths and the local-name -> dotted-path alias table."""
    imports: list[str] = []
    aliases: dict[str, str] = {}

    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "import_statement":
            for child in node.named_children:
                if child.type == "dotted_name":
                    path = _text(child)
                    imports.append(path)
                    head = path.split(".")[0]
                    aliases[head] = head
                elif child.type == "aliased_import":
                    path = _text(child.child_by_field_name("name"))
                    imports.append(path)
                    aliases[_text(child.child_by_field_name("alias"))] = path
            continue
        if node.type == "import_from_statement":
            module_node = node.child_by_field_name("module_name")
            if module_node is None:
                continue
            if module_node.type == "relative_import":
                prefix = ""
                tail = ""
                for sub in module_node.children:
                    if sub.type == "import_prefix":
                        prefix = _text(sub)
                    elif sub.type == "dotted_name":
                        tail = _text(sub)
                base = _relative_base(module, is_package=is_package, prefix=prefix)
                source = ".".join(p for p in (base, tail) if p)
            else:
                source = _text(module_node)
            if source:
                imports.append(source)
            for name_node in node.children_by_field_name("name"):
                if name_node.type == "aliased_import":
                    name = _text(name_node.child_by_field_name("name"))
                    local = _text(name_node.child_by_field_name("alias"))
                else:
                    name = _text(name_node)
                    local = name.split(".")[0]
                aliases[local] = f"{source}.{name}" if source else name
            continue
        stack.extend(reversed(node.children))

    # Preserve first-seen order, drop duplicates.
    return list(dict.fromkeys(imports)), aliases


def _decorator_name(node: TSNode) -> str:
    expr = next((c for c in node.named_children), None)
    if expr is not None and expr.type == "call":
        expr = expr.child_by_field_name("function")
    return _text(expr)


def _base_names(class_node: TSNode) -> list[str]:
    superclasses = class_node.child_by_field_name("superclasses")
    if superclasses is None:
        return []
    names: list[str] = []
    for child in superclasses.named_children:
        if child.type in ("identifier", "attribute"):
            names.append(_text(child))
        elif child.type in ("subscript", "generic_type"):
            names.append(_text(child).split("[")[0])
    return names


def _unwrap(node: TSNode) -> tuple[TSNode, list[str]]:
    """Return the definition inside a decorated_definition and its decorators."""
    if node.type != "decorated_definition":
        return node, []
    decorators = [_decorator_name(c) for c in node.children if c.type == "decorator"]
    definition = node.child_by_field_name("definition")
    return (definition if definition is not None else node), decorators


def _class_calls(body: TSNode, aliases: dict[str, str]) -> list[CallSite]:
    calls: list[CallSite] = []
    stack = list(reversed(body.children))
    while stack:
        node = stack.pop()
        if node.type == "class_definition":
            continue  # nested classes own their calls
        if node.type == "call":
            function = node.child_by_field_name("function")
            if function is not None and function.type in ("identifier", "attribute"):
                calls.append(
                    CallSite(
                        target=_resolve(_text(function), aliases),
                        line_number=node.start_point.row + 1,
                    )
                )
        stack.extend(reversed(node.children))
    return calls


def _class_members(body: TSNode) -> tuple[list[str], list[str]]:
    methods: list[str] = []
    attributes: list[str] = []
    for stmt in body.named_children:
        definition, _ = _unwrap(stmt)
        if definition.type == "function_definition":
            methods.append(_text(definition.child_by_field_name("name")))
        elif stmt.type == "expression_statement":
            for expr in stmt.named_children:
                if expr.type == "assignment":
                    left = expr.child_by_field_name("left")
                    if left is not None and left.type == "identifier":
                        attributes.append(_text(left))
    return methods, attributes


def _extract_classes(
    container: TSNode,
    *,
    module: str,
    file_path: str,
    imports: tuple[str, ...],
    aliases: dict[str, str],
    outer: str = "",
) -> list[CodeClass]:
    results: list[CodeClass] = []
    for child in container.named_children:
        definition, decorators = _unwrap(child)
        if definition.type != "class_definition":
            continue
        name = _text(definition.child_by_field_name("name"))
        qualname = f"{outer}.{name}" if outer else name
        body = definition.child_by_field_name("body")
        methods: list[str] = []
        attributes: list[str] = []
        calls: list[CallSite] = []
        if body is not None:
            methods, attributes = _class_members(body)
            calls = _class_calls(body, aliases)
        results.append(
            CodeClass(
                name=name,
                qualname=qualname,
                module=module,
                file_path=file_path,
                line_number=definition.start_point.row + 1,
                bases=tuple(_resolve(b, aliases) for b in _base_names(definition)),
                decorators=tuple(_resolve(d, aliases) for d in decorators),
                methods=tuple(methods),
                attributes=tuple(attributes),
                calls=tuple(calls),
                imports=imports,
            )
        )
        if body is not None:
            results.extend(
                _extract_classes(
                    body,
                    module=module,
                    file_path=file_path,
                    imports=imports,
                    aliases=aliases,
                    outer=qualname,
                )
            )
    return results


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def module_name_for(path: Path, root: Path) -> str:
    """Map a source file under *root* to its dotted module name."""
    parts = list(path.relative_to(root).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts = parts[:-1]
    return ".".join(parts)


def in_scope(module: str, scope: str) -> bool:
    """Return True if *module* is *scope* itself or lives below it."""
    if not scope:
        return True
    return module == scope or module.startswith(scope + ".")


def _source_files(root: Path) -> list[Path]:
    files: list[Path] = []
    for path in sorted(root.rglob("*.py")):
        rel_parts = path.relative_to(root).parts[:-1]
        if any(p.startswith(".") or p in _SKIPPED_DIRS for p in rel_parts):
            continue
        files.append(path)
    return files


def parse_module(path: Path, module: str) -> list[CodeClass]:
    """Parse one source file and return the classes it declares."""
    try:
        content = path.read_bytes()
    except OSError:
        logger.warning("Cannot read file: %s", path)
        return []

    if not content.strip():
        return []

    tree = _parser().parse(content)
    root = tree.root_node
    raw_imports, aliases = _collect_imports(
        root, module, is_package=path.name == "__init__.py"
    )
    return _extract_classes(
        root,
        module=module,
        file_path=str(path),
        imports=tuple(raw_imports),
        aliases=aliases,
    )


def import_code_set(root_path: str | Path, scope: str = "") -> CodeSet:
    """Import every class under *root_path* whose module is within *scope*.

    *scope* is a dotted package path (``myapp.domain``); slashes are accepted
    and converted.  An empty scope selects the whole tree.

    Raises
    ------
    CodeImportError
        When *root_path* does not exist or is not a directory.
    """
    root = Path(root_path)
    if not root.is_dir():
        msg = f"Cannot import code set: '{root}' is not a directory"
        raise CodeImportError(msg)

    normalized_scope = scope.strip().replace("/", ".").strip(".")

    classes: list[CodeClass] = []
    for path in _source_files(root):
        module = module_name_for(path, root)
        if not in_scope(module, normalized_scope):
            continue
        classes.extend(parse_module(path, module))

    logger.debug(
        "Imported %d classes from %s (scope=%r)", len(classes), root, normalized_scope
    )
    return CodeSet(root=str(root), scope=normalized_scope, classes=tuple(classes))
