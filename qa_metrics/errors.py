"""
Error taxonomy for report parsing and parser selection.
"""

from typing import Optional


class MetricsError(Exception):
    """Base class for all errors raised by the analyzer"""


class ParseError(MetricsError):
    """Content could not be interpreted as the selected report format"""

    def __init__(self, message: str, path: Optional[str] = None, cause: Optional[BaseException] = None):
        self.message = message
        self.path = path
        self.cause = cause
        text = message
        if path:
            text = f"{path}: {text}"
        if cause is not None:
            text = f"{text} ({cause})"
        super().__init__(text)


class SelectionError(MetricsError):
    """No parser could be chosen for a report file"""


class UnsupportedFormatError(SelectionError):
    """An explicit format hint does not name a known parser"""

    def __init__(self, format_name: str):
        self.format_name = format_name
        super().__init__(
            f"Unsupported test framework: {format_name}. "
            f"Expected one of: junit, jest, playwright, auto"
        )


class UnsupportedExtensionError(SelectionError):
    """Auto-detection found a file extension it cannot handle"""

    def __init__(self, path: str, extension: str):
        self.path = path
        self.extension = extension
        super().__init__(
            f"Unsupported file extension: '{extension or '<none>'}' ({path}). "
            f"Please specify the format manually."
        )


class AmbiguousFormatError(SelectionError):
    """JSON content matched neither the Jest nor the Playwright shape"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Unable to auto-detect test framework from JSON file {path}. "
            f"Please specify the format manually."
        )
