"""Byte-compile a generated source tree into sourceless ``.pyc`` artifacts."""

from __future__ import annotations

import logging
import py_compile
from pathlib import Path

from .errors import CompileError

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".py"
ARTIFACT_SUFFIX = ".pyc"


def find_sources(source_root: Path) -> list[Path]:
    """Every Python source under the root, recursively."""
    return sorted(p for p in Path(source_root).rglob(f"*{SOURCE_SUFFIX}") if p.is_file())


def compile_sources(source_root: str | Path, output_root: str | Path) -> list[Path]:
    """Compile every source under ``source_root`` into ``output_root`` as one batch.

    The artifact tree mirrors the source tree: ``pkg/mod.py`` becomes
    ``pkg/mod.pyc``. Diagnostics from all failing files are collected
    and raised together; one failure fails the whole batch.
    """
    source_root = Path(source_root)
    output_root = Path(output_root)
    if not source_root.is_dir():
        raise CompileError(f"Source root does not exist: {source_root}")

    sources = find_sources(source_root)
    if not sources:
        raise CompileError(f"No {SOURCE_SUFFIX} sources found under {source_root}")

    artifacts: list[Path] = []
    diagnostics: list[str] = []
    for source in sources:
        relative = source.relative_to(source_root)
        target = output_root / relative.with_suffix(ARTIFACT_SUFFIX)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            py_compile.compile(
                str(source),
                cfile=str(target),
                dfile=str(relative),
                doraise=True,
                invalidation_mode=py_compile.PycInvalidationMode.UNCHECKED_HASH,
            )
        except py_compile.PyCompileError as exc:
            diagnostics.append(exc.msg.strip())
            continue
        artifacts.append(target)

    if diagnostics:
        raise CompileError(
            f"Compilation failed for {len(diagnostics)} of {len(sources)} sources", diagnostics
        )

    logger.info("Compiled %d sources into %s", len(artifacts), output_root)
    return artifacts
