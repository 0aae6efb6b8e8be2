"""Shared test fixtures for archguard."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


SERVICE_MODULE = """\
import logging
import sys
from abc import ABC, abstractmethod

from shop.domain.model import Order

logger = logging.getLogger(__name__)


class OrderService:
    registry = {}

    def place(self, order: Order) -> None:
        print("placing", order)
        sys.stdout.write("done")


class IRepository(ABC):
    @abstractmethod
    def save(self, order: Order) -> None: ...
"""

MODEL_MODULE = """\
from dataclasses import dataclass

import requests as http


@dataclass(frozen=True)
class Order:
    id: int

    class Line:
        qty: int = 0

        def total(self):
            return http.get("/price")
"""

CLEAN_MODULE = """\
import logging

logger = logging.getLogger(__name__)


class Greeter:
    def greet(self, name: str) -> str:
        logger.info("greeting %s", name)
        return f"hello {name}"
"""


@pytest.fixture()
def sample_project(tmp_path: Path) -> Path:
    """Create a small source tree with a few deliberate violations.

    Layout:
    - shop/service.py: OrderService (prints), IRepository (ABC with I prefix)
    - shop/domain/model.py: Order (dataclass) with nested Line (calls requests)
    """
    root = tmp_path / "project"
    (root / "shop" / "domain").mkdir(parents=True)
    (root / "shop" / "__init__.py").write_text("")
    (root / "shop" / "service.py").write_text(SERVICE_MODULE)
    (root / "shop" / "domain" / "__init__.py").write_text("")
    (root / "shop" / "domain" / "model.py").write_text(MODEL_MODULE)
    return root


@pytest.fixture()
def clean_project(tmp_path: Path) -> Path:
    """Create a source tree that every stock rule accepts."""
    root = tmp_path / "clean"
    (root / "hello").mkdir(parents=True)
    (root / "hello" / "__init__.py").write_text("")
    (root / "hello" / "greeter.py").write_text(CLEAN_MODULE)
    return root


@pytest.fixture()
def rule_dir(tmp_path: Path) -> Path:
    """Empty classpath directory for rule modules written by a test."""
    path = tmp_path / "arch_rules"
    path.mkdir()
    return path


@pytest.fixture()
def write_rules(rule_dir: Path) -> Callable[[str, str], Path]:
    """Return a helper writing ``<module>.py`` (dedented) into *rule_dir*."""

    def _write(module: str, source: str) -> Path:
        path = rule_dir.joinpath(*module.split(".")).with_suffix(".py")
        path.parent.mkdir(parents=True, exist_ok=True)
        for parent in path.parent.relative_to(rule_dir).parents:
            init = rule_dir / parent / "__init__.py"
            if parent.parts and not init.exists():
                init.write_text("")
        if path.parent != rule_dir and not (path.parent / "__init__.py").exists():
            (path.parent / "__init__.py").write_text("")
        path.write_text(textwrap.dedent(source))
        return path

    return _write
