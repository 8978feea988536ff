"""Generate -> compile -> load, one pass, from a clean slate every run.

Both output directories are owned by the pipeline for the length of a
run and are deleted and recreated before use. Concurrent runs must use
distinct directories; nothing here locks them.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .artifacts import SymbolTable, load_artifacts
from .codegen import GenerationEngine
from .compiler import compile_sources
from .generator import ClientGenerator

logger = logging.getLogger(__name__)


def delete_directory(path: str | Path) -> None:
    """Delete a directory tree, children before parents. Missing paths are a no-op."""
    path = Path(path)
    if path.exists():
        shutil.rmtree(path)
        logger.debug("Deleted %s", path)


def reset_directory(path: str | Path) -> Path:
    """Delete the tree if present and recreate it empty."""
    path = Path(path)
    delete_directory(path)
    path.mkdir(parents=True)
    return path


def create_client(
    reference: str,
    generation_dir: str | Path,
    compiled_dir: str | Path,
    *,
    engine: GenerationEngine | None = None,
    timeout: float | None = None,
) -> SymbolTable:
    """Run the whole pipeline for one spec and return its symbol table.

    Any stage failure propagates immediately; no stage is retried and
    no partial table is returned.
    """
    logger.info("Creating client for %s", reference)

    # Step 1: generate the client sources
    generation_dir = reset_directory(generation_dir)
    source_dir = ClientGenerator(engine, timeout=timeout).generate(reference, generation_dir)

    # Step 2: compile the generated sources
    compiled_dir = reset_directory(compiled_dir)
    compile_sources(source_dir, compiled_dir)

    # Step 3: load the compiled client
    return load_artifacts(compiled_dir)
