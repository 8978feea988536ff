"""Generation engines: turn a spec into a Python client source tree.

Every engine writes its output under ``<output_dir>/src``.
TemplateEngine renders the bundled Jinja2 templates; CommandEngine
shells out to an external generator such as openapi-generator-cli.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

import jinja2

from .context_builder import build_context
from .errors import GenerationError
from .loader import SpecDocument

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


class GenerationEngine(Protocol):
    """Anything that can write a client source tree for a spec."""

    language: str

    def generate(self, spec: SpecDocument, output_dir: Path) -> list[Path]:
        ...


def _docstring(text: str) -> str:
    """Make text safe inside a triple-quoted docstring."""
    return str(text).replace("\\", "\\\\").replace('"""', "'''")


def make_environment(template_dir: Path = TEMPLATE_DIR) -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["pyrepr"] = repr
    env.filters["docstring"] = _docstring
    return env


class TemplateEngine:
    """Render the bundled client templates into ``src/<package>``."""

    language = "python"

    def __init__(self, package: str = "swagger_client", template_dir: Path = TEMPLATE_DIR) -> None:
        if not package.isidentifier():
            raise ValueError(f"Invalid client package name: {package!r}")
        self.package = package
        self.env = make_environment(template_dir)

    def _render(self, template: str, target: Path, **context: Any) -> Path:
        output = self.env.get_template(template).render(**context)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(output, encoding="utf-8")
        return target

    def generate(self, spec: SpecDocument, output_dir: Path) -> list[Path]:
        """Render every template; return the written files."""
        context = build_context(spec.document, self.package)
        package_dir = Path(output_dir) / "src" / self.package

        written = [
            self._render("package_init.py.j2", package_dir / "__init__.py", **context),
            self._render("api_client.py.j2", package_dir / "api_client.py", **context),
            self._render("exceptions.py.j2", package_dir / "exceptions.py", **context),
            self._render("model_base.py.j2", package_dir / "model_base.py", **context),
            self._render("api_init.py.j2", package_dir / "api" / "__init__.py", **context),
            self._render("model_init.py.j2", package_dir / "model" / "__init__.py", **context),
        ]
        for api in context["apis"]:
            written.append(self._render("api.py.j2", package_dir / "api" / f"{api['module']}.py", api=api))
        for model in context["models"]:
            written.append(self._render("model.py.j2", package_dir / "model" / f"{model['module']}.py", model=model))

        logger.info(
            "Generated %s (%d APIs, %d models, %d operations)",
            package_dir, len(context["apis"]), len(context["models"]), context["operation_count"],
        )
        return written


class CommandEngine:
    """Run an external generator command line.

    ``command`` items may use ``{spec}`` (path of the spec text written
    into the output directory) and ``{output}`` (the ``src`` directory).
    """

    language = "python"

    def __init__(self, command: Sequence[str], spec_filename: str = "openapi.json") -> None:
        if not command:
            raise ValueError("Generator command must not be empty")
        self.command = list(command)
        self.spec_filename = spec_filename

    def generate(self, spec: SpecDocument, output_dir: Path) -> list[Path]:
        output_dir = Path(output_dir)
        spec_file = output_dir / self.spec_filename
        spec_file.write_text(spec.text, encoding="utf-8")
        source_dir = output_dir / "src"
        argv = [arg.format(spec=spec_file, output=source_dir) for arg in self.command]

        logger.info("Running generator: %s", " ".join(argv))
        try:
            result = subprocess.run(argv, capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            raise GenerationError(f"Generator executable not found: {argv[0]}") from exc
        if result.returncode != 0:
            raise GenerationError(
                f"Generator exited with status {result.returncode}: {result.stderr.strip()}"
            )
        return sorted(source_dir.rglob("*.py"))


# openapi-generator-cli command line for a python client, for use with CommandEngine
OPENAPI_GENERATOR_COMMAND = (
    "openapi-generator-cli", "generate", "-i", "{spec}", "-g", "python", "-o", "{output}",
)
