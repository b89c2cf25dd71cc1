"""
Lexer (tokenizer) for nginx-like configuration syntax.

Supports:
- Identifiers (keywords, directive names)
- Quoted strings (double or single quotes with escape sequences)
- Bare absolute paths (/proc/stat, /sys/class/thermal/thermal_zone0/temp)
- Numbers and durations (5, 2.5, 500ms, 10s, 5m, 1h)
- Braces and semicolons
- Single-line (#) and multi-line (/* */) comments
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types for the nginx-like config syntax."""

    # Literals
    IDENTIFIER = auto()  # keyword, directive name
    STRING = auto()  # "quoted string" or bare /path
    NUMBER = auto()  # 123, 45.67
    DURATION = auto()  # 10s, 5m, 1h, 30ms (value in seconds)
    BOOLEAN = auto()  # on, off, true, false

    # Delimiters
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    SEMICOLON = auto()  # ;

    # Special
    INCLUDE = auto()  # include directive
    EOF = auto()  # end of file


@dataclass
class Token:
    """A single token from the lexer."""

    type: TokenType
    value: str | int | float | bool
    line: int
    column: int
    raw: str = ""

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class LexerError(Exception):
    """Exception raised for lexer errors."""

    def __init__(self, message: str, line: int, column: int, filename: str = "<string>"):
        self.line = line
        self.column = column
        self.filename = filename
        super().__init__(f"{filename}, line {line}, column {column}: {message}")


class Lexer:
    """
    Tokenizer for nginx-like configuration syntax.

    Example config:
        defaults {
            update_interval 5s;
        }

        storage {
            path /;
            path "/mnt/My Disk";
        }
    """

    BOOLEAN_KEYWORDS = {"on": True, "off": False, "true": True, "false": False}

    # Duration units in seconds
    DURATION_UNITS = {
        "ms": 0.001,
        "s": 1,
        "m": 60,
        "h": 3600,
        "d": 86400,
    }

    ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\"}

    NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)([a-zA-Z]*)")

    # Characters that end a bare path
    PATH_TERMINATORS = set(" \t\r\n;{}#")

    def __init__(self, source: str, filename: str = "<string>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1

    def _error(self, message: str, line: int | None = None, column: int | None = None) -> LexerError:
        return LexerError(
            message,
            self.line if line is None else line,
            self.column if column is None else column,
            self.filename,
        )

    def _current(self) -> str:
        """Get current character or empty string if at end."""
        if self.pos >= len(self.source):
            return ""
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> str:
        """Peek at character at offset from current position."""
        pos = self.pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self, count: int = 1) -> str:
        """Advance position and return the consumed text."""
        consumed = self.source[self.pos : self.pos + count]
        for char in consumed:
            if char == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += len(consumed)
        return consumed

    def _skip_whitespace_and_comments(self) -> None:
        while True:
            char = self._current()
            if char and char in " \t\r\n":
                self._advance()
            elif char == "#":
                while self._current() and self._current() != "\n":
                    self._advance()
            elif char == "/" and self._peek() == "*":
                start_line, start_col = self.line, self.column
                end = self.source.find("*/", self.pos + 2)
                if end < 0:
                    raise self._error("Unterminated multi-line comment", start_line, start_col)
                self._advance(end + 2 - self.pos)
            else:
                return

    def _read_string(self) -> Token:
        """Read a quoted string literal."""
        start_line, start_col = self.line, self.column
        start_pos = self.pos
        quote_char = self._advance()

        result = []
        while True:
            char = self._current()
            if not char or char == "\n":
                raise self._error("Unterminated string literal", start_line, start_col)
            self._advance()
            if char == quote_char:
                break
            if char == "\\":
                escape_char = self._advance()
                if not escape_char:
                    raise self._error("Unexpected end of string")
                result.append(self.ESCAPES.get(escape_char, escape_char))
            else:
                result.append(char)

        return Token(
            TokenType.STRING,
            "".join(result),
            start_line,
            start_col,
            self.source[start_pos : self.pos],
        )

    def _read_path(self) -> Token:
        """Read an unquoted absolute path."""
        start_line, start_col = self.line, self.column
        start_pos = self.pos
        while self._current() and self._current() not in self.PATH_TERMINATORS:
            self._advance()
        raw = self.source[start_pos : self.pos]
        return Token(TokenType.STRING, raw, start_line, start_col, raw)

    def _read_number_or_duration(self) -> Token:
        """Read a number literal, optionally with duration unit."""
        start_line, start_col = self.line, self.column
        match = self.NUMBER_RE.match(self.source, self.pos)
        # The caller only dispatches here on a digit, so the regex always matches
        assert match is not None
        raw = match.group(0)
        num_str, unit = match.group(1), match.group(2).lower()
        self._advance(len(raw))

        value: int | float = float(num_str) if "." in num_str else int(num_str)

        if not unit:
            return Token(TokenType.NUMBER, value, start_line, start_col, raw)

        if unit not in self.DURATION_UNITS:
            raise self._error(f"Unknown duration unit: {unit}", start_line, start_col)

        return Token(
            TokenType.DURATION,
            value * self.DURATION_UNITS[unit],
            start_line,
            start_col,
            raw,
        )

    def _read_identifier(self) -> Token:
        """Read an identifier or keyword."""
        start_line, start_col = self.line, self.column
        start_pos = self.pos
        while self._current() and (self._current().isalnum() or self._current() in "_-"):
            self._advance()

        raw = self.source[start_pos : self.pos]
        value = raw.lower()

        if value in self.BOOLEAN_KEYWORDS:
            return Token(TokenType.BOOLEAN, self.BOOLEAN_KEYWORDS[value], start_line, start_col, raw)

        if value == "include":
            return Token(TokenType.INCLUDE, raw, start_line, start_col, raw)

        return Token(TokenType.IDENTIFIER, raw, start_line, start_col, raw)

    def next_token(self) -> Token:
        """Get the next token from the source."""
        self._skip_whitespace_and_comments()

        char = self._current()
        start_line, start_col = self.line, self.column

        if not char:
            return Token(TokenType.EOF, "", start_line, start_col)

        single = {"{": TokenType.LBRACE, "}": TokenType.RBRACE, ";": TokenType.SEMICOLON}
        if char in single:
            self._advance()
            return Token(single[char], char, start_line, start_col, char)

        if char in "\"'":
            return self._read_string()

        if char == "/":
            return self._read_path()

        if char.isdigit():
            return self._read_number_or_duration()

        if char.isalpha() or char == "_":
            return self._read_identifier()

        raise self._error(f"Unexpected character: {char!r}")

    def tokenize(self) -> Iterator[Token]:
        """Generate all tokens from the source."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def __iter__(self) -> Iterator[Token]:
        return self.tokenize()


def tokenize(source: str, filename: str = "<string>") -> list[Token]:
    """Convenience function to tokenize a source string."""
    return list(Lexer(source, filename))
