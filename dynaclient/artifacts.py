"""Load compiled artifacts into an isolated namespace and index them by name.

Each run mounts the compiled tree under a private package prefix
(``_dynaclient_<hex>``) so generated names never collide with modules
already imported in the process, or with another run's artifacts.
"""

from __future__ import annotations

import importlib
import importlib.abc
import importlib.machinery
import importlib.util
import inspect
import logging
import sys
import types
import uuid
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from .compiler import ARTIFACT_SUFFIX
from .errors import LoadError, SymbolNotFoundError

logger = logging.getLogger(__name__)

_PACKAGE_INIT = "__init__"


class SymbolTable(Mapping[str, Any]):
    """Fully-qualified generated name -> loaded module or class.

    Iteration covers recorded names. Classes nested inside a recorded
    class (``swagger_client.model.Pet.StatusEnum``) resolve through
    lookup but are not enumerated.
    """

    def __init__(self) -> None:
        self._symbols: dict[str, Any] = {}
        self._nested: dict[str, type] = {}

    def record(self, name: str, handle: Any) -> None:
        if name in self._symbols and self._symbols[name] is not handle:
            logger.warning("Duplicate generated symbol %s; keeping the later one", name)
        self._symbols[name] = handle

    def record_nested(self, name: str, handle: type) -> None:
        self._nested[name] = handle

    def __getitem__(self, name: str) -> Any:
        if name in self._symbols:
            return self._symbols[name]
        if name in self._nested:
            return self._nested[name]
        raise SymbolNotFoundError(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f"<SymbolTable {len(self._symbols)} symbols, {len(self._nested)} nested>"

    def nested_names(self) -> list[str]:
        return sorted(self._nested)

    def types(self, category: str | None = None) -> dict[str, type]:
        """Recorded classes, optionally only one category.

        ``category`` is the segment before the class name: ``"api"`` or
        ``"model"``; ``None`` returns every class.
        """
        result = {}
        for name, handle in self._symbols.items():
            if not inspect.isclass(handle):
                continue
            parts = name.split(".")
            if category is None or (len(parts) > 2 and parts[-2] == category):
                result[name] = handle
        return result


class _ArtifactFinder(importlib.abc.MetaPathFinder):
    """Resolve ``<prefix>.a.b`` to ``<root>/a/b.pyc`` or ``<root>/a/b/__init__.pyc``."""

    def __init__(self, prefix: str, root: Path) -> None:
        self.prefix = prefix
        self.root = root

    def find_spec(self, fullname, path=None, target=None):
        if not fullname.startswith(self.prefix + "."):
            return None
        parts = fullname[len(self.prefix) + 1:].split(".")
        package_dir = self.root.joinpath(*parts)

        init = package_dir / (_PACKAGE_INIT + ARTIFACT_SUFFIX)
        if init.is_file():
            loader = importlib.machinery.SourcelessFileLoader(fullname, str(init))
            return importlib.util.spec_from_file_location(
                fullname, init, loader=loader, submodule_search_locations=[str(package_dir)],
            )

        artifact = package_dir.with_name(parts[-1] + ARTIFACT_SUFFIX)
        if artifact.is_file():
            loader = importlib.machinery.SourcelessFileLoader(fullname, str(artifact))
            return importlib.util.spec_from_file_location(fullname, artifact, loader=loader)

        if package_dir.is_dir():
            # directory without __init__: namespace package
            spec = importlib.machinery.ModuleSpec(fullname, None, is_package=True)
            spec.submodule_search_locations = [str(package_dir)]
            return spec
        return None


class ArtifactNamespace:
    """An isolated import namespace over one compiled artifact root.

    Use as a context manager; names loaded through ``load`` stay usable
    after ``release`` because the returned objects keep their globals.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()
        self.prefix = f"_dynaclient_{uuid.uuid4().hex}"
        self._finder = _ArtifactFinder(self.prefix, self.root)
        self._open = False
        self._released = False

    def open(self) -> ArtifactNamespace:
        if self._released:
            raise LoadError("Artifact namespace has been released")
        if self._open:
            return self
        package = types.ModuleType(self.prefix)
        package.__path__ = [str(self.root)]
        package.__spec__ = importlib.machinery.ModuleSpec(self.prefix, None, is_package=True)
        package.__spec__.submodule_search_locations = package.__path__
        sys.modules[self.prefix] = package
        sys.meta_path.insert(0, self._finder)
        self._open = True
        logger.debug("Opened artifact namespace %s over %s", self.prefix, self.root)
        return self

    def load(self, name: str) -> types.ModuleType:
        """Import ``name`` (unprefixed) from the artifact root."""
        if self._released:
            raise LoadError(f"Cannot load {name}: artifact namespace has been released")
        if not self._open:
            raise LoadError(f"Cannot load {name}: artifact namespace is not open")
        try:
            return importlib.import_module(f"{self.prefix}.{name}")
        except Exception as exc:
            raise LoadError(f"Failed to load artifact {name}: {exc}") from exc

    def release(self) -> None:
        """Remove the finder and purge the namespace from ``sys.modules``."""
        if self._released:
            return
        if self._finder in sys.meta_path:
            sys.meta_path.remove(self._finder)
        for name in [n for n in sys.modules if n == self.prefix or n.startswith(self.prefix + ".")]:
            del sys.modules[name]
        self._open = False
        self._released = True
        logger.debug("Released artifact namespace %s", self.prefix)

    def __enter__(self) -> ArtifactNamespace:
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.release()


def find_artifacts(root: Path) -> list[Path]:
    return sorted(p for p in Path(root).rglob(f"*{ARTIFACT_SUFFIX}") if p.is_file())


def artifact_name(root: Path, artifact: Path) -> str:
    """``<root>/pkg/api/pet_api.pyc`` -> ``pkg.api.pet_api``; package inits map to the package."""
    parts = list(artifact.relative_to(root).with_suffix("").parts)
    if parts[-1] == _PACKAGE_INIT and len(parts) > 1:
        parts.pop()
    return ".".join(parts)


def _record_nested(symbols: SymbolTable, name: str, cls: type) -> None:
    for attr, inner in vars(cls).items():
        if inspect.isclass(inner) and inner.__qualname__ == f"{cls.__qualname__}.{attr}":
            nested_name = f"{name}.{attr}"
            symbols.record_nested(nested_name, inner)
            logger.debug("Resolved nested type %s", nested_name)
            _record_nested(symbols, nested_name, inner)


def _record_module(symbols: SymbolTable, name: str, module: types.ModuleType, is_package: bool) -> None:
    symbols.record(name, module)
    owner = name if is_package else name.rpartition(".")[0]
    for attr, value in vars(module).items():
        if inspect.isclass(value) and value.__module__ == module.__name__ and value.__qualname__ == attr:
            type_name = f"{owner}.{attr}" if owner else attr
            symbols.record(type_name, value)
            _record_nested(symbols, type_name, value)


def load_artifacts(root: str | Path) -> SymbolTable:
    """Load every ``.pyc`` under root and return the symbol table.

    The namespace is released once the walk completes; any artifact
    that fails to import aborts the walk with LoadError.
    """
    root = Path(root).resolve()
    artifacts = find_artifacts(root)
    if not artifacts:
        raise LoadError(f"No compiled artifacts found under {root}")

    symbols = SymbolTable()
    with ArtifactNamespace(root) as namespace:
        for artifact in artifacts:
            name = artifact_name(root, artifact)
            module = namespace.load(name)
            _record_module(symbols, name, module, artifact.stem == _PACKAGE_INIT)
            logger.debug("Loaded artifact %s", name)

    logger.info("Loaded %d artifacts (%d symbols) from %s", len(artifacts), len(symbols), root)
    return symbols
