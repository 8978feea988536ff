"""Entry point: python -m dynaclient [SPEC]

Generates, compiles and loads a client for SPEC (default: DYNACLIENT_SPEC),
prints the loaded symbols, then removes the output directories.
"""

from __future__ import annotations

import logging
import sys

from .config import Settings
from .codegen import TemplateEngine
from .pipeline import create_client, delete_directory


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = Settings.from_env()
    spec = argv[0] if argv else settings.spec

    try:
        symbols = create_client(
            spec,
            settings.generation_dir,
            settings.compiled_dir,
            engine=TemplateEngine(settings.package),
            timeout=settings.fetch_timeout,
        )
        for name in sorted(symbols.types()):
            print(name)
        print(f"Loaded {len(symbols.types())} types from {spec}")
    finally:
        delete_directory(settings.generation_dir)
        delete_directory(settings.compiled_dir)


if __name__ == "__main__":
    main()
