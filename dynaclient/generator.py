"""Fetch a spec and hand it to a generation engine."""

from __future__ import annotations

import logging
from pathlib import Path

import jinja2

from .codegen import GenerationEngine, TemplateEngine
from .errors import GenerationError
from .loader import load_spec

logger = logging.getLogger(__name__)


class ClientGenerator:
    """One target language, one output directory per call.

    Fetch failures propagate as FetchError; engine failures and output
    without a ``src`` subtree of Python sources are GenerationError.
    """

    def __init__(self, engine: GenerationEngine | None = None, timeout: float | None = None) -> None:
        self.engine = engine or TemplateEngine()
        self.timeout = timeout

    def generate(self, reference: str, output_dir: str | Path) -> Path:
        """Generate the client; return the ``src`` directory."""
        output_dir = Path(output_dir)
        spec = load_spec(reference, timeout=self.timeout)

        try:
            self.engine.generate(spec, output_dir)
        except (jinja2.TemplateError, OSError) as exc:
            raise GenerationError(f"{self.engine.language} generation failed: {exc}") from exc

        source_dir = output_dir / "src"
        if not source_dir.is_dir():
            raise GenerationError(f"Generator produced no src directory under {output_dir}")
        if not any(source_dir.rglob("*.py")):
            raise GenerationError(f"Generator produced no Python sources under {source_dir}")

        logger.info("Generated %s client from %s into %s", self.engine.language, reference, source_dir)
        return source_dir
