"""Dynamic module loader: resolve rule identifiers against explicit classpath locations."""

from __future__ import annotations

import importlib
import importlib.abc
import inspect
import logging
import os
import sys
import zipfile
from contextlib import contextmanager
from importlib.machinery import PathFinder
from pathlib import Path
from typing import TYPE_CHECKING

from archguard.errors import LoadingError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from importlib.machinery import ModuleSpec
    from types import ModuleType

logger = logging.getLogger(__name__)


def _check_location(location: Path) -> Path:
    if not location.exists():
        msg = f"Classpath entry '{location}' does not exist"
        raise LoadingError(msg)
    if location.is_dir():
        if not os.access(location, os.R_OK | os.X_OK):
            msg = f"Classpath entry '{location}' is not readable"
            raise LoadingError(msg)
        return location.resolve()
    try:
        is_archive = zipfile.is_zipfile(location)
    except OSError as exc:
        msg = f"Classpath entry '{location}' is not readable"
        raise LoadingError(msg) from exc
    if not is_archive:
        msg = f"Classpath entry '{location}' is neither a directory nor a zip archive"
        raise LoadingError(msg)
    return location.resolve()


class LoadingContext(importlib.abc.MetaPathFinder):
    """Resolves rule sources from an ordered list of classpath locations.

    The context is an explicit value handed to every caller.  While
    :meth:`activated` is in effect it sits at the end of ``sys.meta_path``, so
    anything the interpreter can already import wins and only top-level
    names it cannot find are looked up in the supplied locations.
    """

    def __init__(self, locations: Sequence[str | Path]) -> None:
        self.locations: tuple[Path, ...] = tuple(_check_location(Path(p)) for p in locations)
        self._entries = [str(p) for p in self.locations]
        self._active = False

    # -- MetaPathFinder -------------------------------------------------------

    def find_spec(
        self,
        fullname: str,
        path: Sequence[str] | None,
        target: ModuleType | None = None,
    ) -> ModuleSpec | None:
        if path is not None:
            # Submodules are found through their parent's __path__.
            return None
        return PathFinder.find_spec(fullname, self._entries)

    def invalidate_caches(self) -> None:
        PathFinder.invalidate_caches()

    # -- Activation -----------------------------------------------------------

    @property
    def active(self) -> bool:
        return self._active

    @contextmanager
    def activated(self) -> Iterator[LoadingContext]:
        """Install the context for the duration of one run.

        Modules imported from the context's locations while it was active are
        removed from ``sys.modules`` on exit, so the next run starts clean.
        """
        before = set(sys.modules)
        sys.meta_path.append(self)
        importlib.invalidate_caches()
        self._active = True
        logger.debug("Loading context activated with %d locations", len(self.locations))
        try:
            yield self
        finally:
            self._active = False
            if self in sys.meta_path:
                sys.meta_path.remove(self)
            for name in set(sys.modules) - before:
                if self._owns(sys.modules.get(name)):
                    del sys.modules[name]

    def _owns(self, module: ModuleType | None) -> bool:
        spec = getattr(module, "__spec__", None)
        if spec is None:
            return False
        paths = list(spec.submodule_search_locations or [])
        if spec.origin:
            paths.append(spec.origin)
        return any(Path(p).is_relative_to(entry) for p in paths for entry in self._entries)

    # -- Resolution -----------------------------------------------------------

    def load_class(self, identifier: str) -> type:
        """Resolve ``pkg.module.Class`` or ``pkg.module:Class`` to a class object.

        Raises
        ------
        LoadingError
            When the context is not active, the module cannot be imported, or
            the attribute is missing or not a class.
        """
        if not self._active:
            msg = f"Cannot load '{identifier}': loading context is not active"
            raise LoadingError(msg)

        if ":" in identifier:
            module_name, _, attr_path = identifier.partition(":")
        else:
            module_name, _, attr_path = identifier.rpartition(".")
        if not module_name or not attr_path:
            msg = f"Invalid rule identifier '{identifier}', expected 'package.module.ClassName'"
            raise LoadingError(msg)

        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as exc:
            if exc.name is not None and (
                module_name == exc.name or module_name.startswith(exc.name + ".")
            ):
                msg = f"Cannot resolve rule source '{identifier}': module '{module_name}' not found"
            else:
                msg = f"Cannot load rule source '{identifier}': {exc}"
            raise LoadingError(msg) from exc
        except Exception as exc:
            msg = f"Cannot load rule source '{identifier}': {exc!r}"
            raise LoadingError(msg) from exc

        obj: object = module
        for part in attr_path.split("."):
            try:
                obj = getattr(obj, part)
            except AttributeError as exc:
                msg = f"Cannot resolve rule source '{identifier}': no attribute '{part}'"
                raise LoadingError(msg) from exc

        if not inspect.isclass(obj):
            msg = f"Rule source '{identifier}' is not a class"
            raise LoadingError(msg)

        logger.debug("Loaded rule source %s from %s", identifier, module.__file__)
        return obj
