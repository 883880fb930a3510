"""
Parser selection by explicit format name or by file extension and content sniffing.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from .base_parser import BaseParser, read_text
from .jest_parser import JestParser, has_jest_shape
from .junit_parser import JUnitParser
from .playwright_parser import PlaywrightParser
from ..errors import (
    AmbiguousFormatError, ParseError, UnsupportedExtensionError, UnsupportedFormatError
)

logger = logging.getLogger(__name__)

AUTO = 'auto'

PARSERS = {
    'junit': JUnitParser,
    'jest': JestParser,
    'playwright': PlaywrightParser,
}


def get_parser(format_name: str) -> BaseParser:
    """
    Get a parser by exact (case-insensitive) format name.

    Raises:
        UnsupportedFormatError: If no parser has that name
    """
    parser_class = PARSERS.get((format_name or '').strip().lower())
    if parser_class is None:
        raise UnsupportedFormatError(format_name)
    return parser_class()


def detect_format(path: str, content: Optional[str] = None) -> str:
    """
    Detect the report format of a file.

    Args:
        path: Report file path (its extension drives the first decision)
        content: Already-read file content; read from disk when omitted

    Returns:
        Format name: 'junit', 'jest' or 'playwright'

    Raises:
        UnsupportedExtensionError: For extensions other than .xml and .json
        ParseError: If a .json file cannot be decoded
        AmbiguousFormatError: If JSON content matches neither runner shape
    """
    extension = Path(path).suffix.lower()

    if extension == '.xml':
        return 'junit'

    if extension != '.json':
        raise UnsupportedExtensionError(path, extension)

    if content is None:
        try:
            content = read_text(path)
        except OSError as e:
            raise ParseError("Could not read report file", path=path, cause=e) from e

    try:
        data = json.loads(content)
    except ValueError as e:
        raise ParseError("Malformed JSON", path=path, cause=e) from e

    if has_jest_shape(data):
        return 'jest'
    if isinstance(data, list) or (isinstance(data, dict) and isinstance(data.get('suites'), list)):
        return 'playwright'
    raise AmbiguousFormatError(path)


def select_parser(path: str, format_hint: str = AUTO, content: Optional[str] = None) -> BaseParser:
    """
    Decide which parser handles a report file.

    Args:
        path: Report file path
        format_hint: 'auto' or an explicit format name
        content: Optional already-read content used for sniffing

    Returns:
        Parser instance
    """
    hint = (format_hint or AUTO).strip().lower()
    if hint != AUTO:
        return get_parser(hint)

    format_name = detect_format(path, content)
    logger.debug(f"Auto-detected {format_name} format for {path}")
    return get_parser(format_name)
