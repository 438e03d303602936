"""Result batch parser.

Parses batch documents (YAML, or JSON as its subset) and validates them
against the batch schema.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from teststate.exceptions import BatchParseError, BatchValidationError
from teststate.models import BatchDocument


class BatchParser:
    """Parser for result batch files."""

    @classmethod
    def parse_file(cls, path: Path | str) -> BatchDocument:
        """Parse a batch from a YAML or JSON file.

        Args:
            path: Path to the batch file.

        Returns:
            Validated BatchDocument instance.

        Raises:
            BatchParseError: If the file cannot be read or parsed.
            BatchValidationError: If the content doesn't match the batch schema.
        """
        path = Path(path)

        if not path.exists():
            msg = f"Batch file not found: {path}"
            raise BatchParseError(msg)

        if not path.is_file():
            msg = f"Batch path is not a file: {path}"
            raise BatchParseError(msg)

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Failed to read batch file {path}: {e}"
            raise BatchParseError(msg) from e

        return cls.parse_string(content, source=str(path))

    @classmethod
    def parse_string(cls, content: str, source: str = "<string>") -> BatchDocument:
        """Parse a batch from a YAML or JSON string.

        Raises:
            BatchParseError: If the content cannot be parsed or is not a mapping.
            BatchValidationError: If the content doesn't match the batch schema.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML in {source}: {e}"
            raise BatchParseError(msg) from e

        if data is None:
            msg = f"Empty batch file: {source}"
            raise BatchParseError(msg)

        if not isinstance(data, dict):
            msg = f"Batch must be a mapping, got {type(data).__name__}: {source}"
            raise BatchParseError(msg)

        return cls.parse_dict(data, source=source)

    @classmethod
    def parse_dict(cls, data: dict[str, Any], source: str = "<dict>") -> BatchDocument:
        """Validate a batch given as a dictionary.

        Raises:
            BatchValidationError: If the data doesn't match the batch schema.
        """
        try:
            return BatchDocument.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid batch in {source}: {e}"
            raise BatchValidationError(msg) from e

    @classmethod
    def parse_files(cls, paths: list[Path]) -> list[BatchDocument]:
        """Parse several batch files, preserving their order."""
        return [cls.parse_file(path) for path in paths]
