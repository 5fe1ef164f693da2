"""
Error kinds raised while reading UPLC programs.

Every failure is a deterministic consequence of malformed input, so nothing
here is retried. Each kind is its own class so callers can tell them apart
with ``except``; the message is always the user-facing text.

Hierarchy:
    ParseError
        EmptyInputError
        TextParseError
            VersionUnreadableError
            VersionInvalidError
        BinaryDecodeError
            HexEmptyError
            HexInvalidCharactersError
            HexOddLengthError
        CombinedParseError
"""

from __future__ import annotations


class ParseError(Exception):
    """Base class for every input that could not be turned into a program."""

    @property
    def message(self) -> str:
        return str(self)


class EmptyInputError(ParseError):
    """Raised when there is nothing to parse."""

    def __init__(self, message: str = "Paste a UPLC program or its CBOR hex representation to begin."):
        super().__init__(message)


class TextParseError(ParseError):
    """Raised when the input is not valid UPLC source text."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        if line is not None and column is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)
        self.line = line
        self.column = column


class VersionUnreadableError(TextParseError):
    """The program header has no readable ``M.m.p`` version."""

    def __init__(self, message: str = "Unable to read the program version from the input."):
        super().__init__(message)


class VersionInvalidError(TextParseError):
    """The program header has a version token that does not form a version."""

    def __init__(self, message: str = "The program version found in the input is not valid."):
        super().__init__(message)


class BinaryDecodeError(ParseError):
    """Raised when the input is not a CBOR-wrapped flat program."""
    pass


class HexEmptyError(BinaryDecodeError):
    def __init__(self, message: str = "The CBOR hex string is empty."):
        super().__init__(message)


class HexInvalidCharactersError(BinaryDecodeError):
    def __init__(self, message: str = "The CBOR input contains non-hexadecimal characters."):
        super().__init__(message)


class HexOddLengthError(BinaryDecodeError):
    def __init__(self, message: str = "Hex strings must contain an even number of characters."):
        super().__init__(message)


class CombinedParseError(ParseError):
    """
    Both interpretations of an input failed.

    Keeps both underlying messages verbatim so either root cause can be
    diagnosed from the single combined message.
    """

    def __init__(self, text_message: str, binary_message: str):
        self.text_message = text_message
        self.binary_message = binary_message
        super().__init__(
            " ".join([
                f"Failed to parse as UPLC text: {text_message or 'unknown error.'}",
                f"Failed to parse as CBOR hex: {binary_message}",
            ])
        )


__all__ = [
    "ParseError",
    "EmptyInputError",
    "TextParseError",
    "VersionUnreadableError",
    "VersionInvalidError",
    "BinaryDecodeError",
    "HexEmptyError",
    "HexInvalidCharactersError",
    "HexOddLengthError",
    "CombinedParseError",
]
