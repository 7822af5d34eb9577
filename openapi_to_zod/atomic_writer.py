"""
Atomic file writer for generated schema files.

Ensures that an interrupted run never leaves a half-written output file
behind.
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

from .errors import SchemaGenerationError


class AtomicWriter:
    """Writes content atomically after a structural sanity check.

    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file
    """

    def __init__(self, validate: Callable[[str], None] | None = None):
        """Initialize the atomic writer.

        Args:
            validate: Optional validation function for the generated TypeScript
        """
        self._validate = validate or self._default_validate

    def write(self, path: Path, content: str, validate: bool = True) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            validate: Whether to validate before finalizing

        Raises:
            SchemaGenerationError: If validation fails
            OSError: If file operations fail
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory ensures an atomic rename on the same filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            text=True,
        )
        temp_path = Path(temp_path_str)

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            if validate:
                self._validate(content)
            temp_path.replace(path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

    @staticmethod
    def _default_validate(content: str) -> None:
        """Basic structural checks of a generated Zod module.

        Args:
            content: TypeScript code to validate

        Raises:
            SchemaGenerationError: If validation fails
        """
        if 'import { z } from "zod";' not in content:
            raise SchemaGenerationError("Generated file is missing the zod import")

        if "export const " not in content:
            raise SchemaGenerationError("Generated file has no schema definitions")
