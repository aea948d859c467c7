"""Writes the final JSON result to a file or to standard output."""

import json
import logging
import sys
from pathlib import Path

from hyperverge_uploader.models import BatchResult, UploadOutcome

logger = logging.getLogger(__name__)


class OutputWriteError(Exception):
    """Exception raised when the result cannot be written."""

    pass


class ResultSink:
    """Destination for the single JSON document each run produces."""

    def __init__(self, output: Path | None = None) -> None:
        """Initialize result sink.

        Args:
            output: File to append the result to; standard output when None
        """
        self.output = output

    def emit(self, value: UploadOutcome | BatchResult) -> None:
        """Serialize a result as one line of JSON.

        Args:
            value: An upload outcome or a batch result

        Raises:
            OutputWriteError: If the output file cannot be written
        """
        text = json.dumps(value.to_dict(), ensure_ascii=False) + "\n"

        if self.output is None:
            sys.stdout.write(text)
            sys.stdout.flush()
            return

        try:
            with open(self.output, "a", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            raise OutputWriteError(f"Failed to write result to {self.output}: {e}") from e
        logger.debug(f"Wrote result to {self.output}")
