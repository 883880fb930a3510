"""
Common contract for report parsers.
"""

import logging
from pathlib import Path

from .models import ParsedReport, FrameworkType
from ..errors import ParseError

logger = logging.getLogger(__name__)


def read_text(path: str) -> str:
    """Read a report file as UTF-8 text"""
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


class BaseParser:
    """Base class for format parsers. Parsers are stateless."""

    framework: FrameworkType = None

    @property
    def name(self) -> str:
        return self.framework.value

    def parse(self, content: str) -> ParsedReport:
        """
        Parse raw report content into the canonical model.

        Args:
            content: Raw file content

        Returns:
            ParsedReport

        Raises:
            ParseError: If the content is not a valid report of this format
        """
        raise NotImplementedError("Subclasses must implement parse()")

    def parse_file(self, path: str) -> ParsedReport:
        """
        Read and parse a report file.

        Args:
            path: Path to the report file

        Returns:
            ParsedReport with ``source`` set to the path

        Raises:
            ParseError: If the file cannot be read or parsed (carries the path)
        """
        try:
            content = read_text(path)
        except OSError as e:
            raise ParseError("Could not read report file", path=path, cause=e) from e

        try:
            report = self.parse(content)
        except ParseError as e:
            raise ParseError(e.message, path=path, cause=e.cause) from e

        report.source = str(Path(path))
        logger.debug(f"Parsed {path} with {self.name} parser: {len(report.suites)} suites, {report.test_count} tests")
        return report

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(framework={self.name})"
