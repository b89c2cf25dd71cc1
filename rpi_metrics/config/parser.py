"""
Recursive descent parser for nginx-like configuration syntax.

Turns lexer tokens into a tree of blocks and directives. Include
statements are expanded in place (glob patterns, relative to the
including file).
"""

import glob as glob_module
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .lexer import Lexer, Token, TokenType


class ParseError(Exception):
    """Exception raised for parser errors."""

    def __init__(self, message: str, token: Token | None = None, filename: str = "<string>"):
        self.token = token
        if token:
            super().__init__(f"{filename}, line {token.line}, column {token.column}: {message}")
        else:
            super().__init__(f"{filename}: {message}")


@dataclass
class Directive:
    """
    A configuration directive with a name and values.

    Examples:
        path /proc/stat;        -> Directive(name="path", values=["/proc/stat"])
        update_interval 5s;     -> Directive(name="update_interval", values=[5])
        enabled off;            -> Directive(name="enabled", values=[False])
    """

    name: str
    values: list[Any] = field(default_factory=list)
    line: int = 0
    column: int = 0

    def __repr__(self) -> str:
        return f"Directive({self.name}, {self.values})"

    @property
    def value(self) -> Any:
        """Get single value (first) or None."""
        return self.values[0] if self.values else None


@dataclass
class Block:
    """
    A configuration block with a type, optional name, and contents.

    Examples:
        webhook { ... }           -> Block(type="webhook", name=None, ...)
        storage "data" { ... }    -> Block(type="storage", name="data", ...)
    """

    type: str
    name: str | None = None
    directives: list[Directive] = field(default_factory=list)
    blocks: list["Block"] = field(default_factory=list)
    line: int = 0
    column: int = 0

    def __repr__(self) -> str:
        return (
            f"Block({self.type}, {self.name!r}, "
            f"directives={len(self.directives)}, blocks={len(self.blocks)})"
        )

    def get_directive(self, name: str) -> Directive | None:
        """Get the last directive with given name (later ones override)."""
        found = None
        for d in self.directives:
            if d.name == name:
                found = d
        return found

    def get_value(self, name: str, default: Any = None) -> Any:
        """Get single value from directive."""
        directive = self.get_directive(name)
        if directive is not None and directive.values:
            return directive.value
        return default

    def get_all_values(self, name: str) -> list[Any]:
        """
        Get all values from all directives with given name.

        Useful for directives that can be repeated or take a list:
            path /;
            path /boot /srv;
        Returns: ["/", "/boot", "/srv"]
        """
        values = []
        for d in self.directives:
            if d.name == name:
                values.extend(d.values)
        return values

    def get_block(self, type_name: str) -> "Block | None":
        """Get first nested block with given type."""
        for b in self.blocks:
            if b.type == type_name:
                return b
        return None


@dataclass
class ConfigDocument:
    """Root document containing all top-level blocks and directives."""

    blocks: list[Block] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)
    filename: str = "<string>"

    def get_block(self, type_name: str) -> Block | None:
        """Get first block with given type."""
        for b in self.blocks:
            if b.type == type_name:
                return b
        return None

    def get_blocks(self, type_name: str) -> list[Block]:
        """Get all blocks with given type."""
        return [b for b in self.blocks if b.type == type_name]

    def merge(self, other: "ConfigDocument") -> None:
        """Merge another document into this one (for includes)."""
        self.blocks.extend(other.blocks)
        self.directives.extend(other.directives)


class ConfigParser:
    """
    Recursive descent parser for nginx-like configuration.

    Grammar:
        document    := (block | directive | include)*
        block       := IDENTIFIER [STRING] '{' (block | directive | include)* '}'
        directive   := IDENTIFIER value* ';'
        value       := STRING | NUMBER | DURATION | BOOLEAN | IDENTIFIER
        include     := 'include' STRING ';'
    """

    VALUE_TYPES = (
        TokenType.STRING,
        TokenType.NUMBER,
        TokenType.DURATION,
        TokenType.BOOLEAN,
        TokenType.IDENTIFIER,
    )

    def __init__(
        self,
        source: str,
        filename: str = "<string>",
        base_path: Path | None = None,
        included_files: set[str] | None = None,
    ):
        self.lexer = Lexer(source, filename)
        self.filename = filename
        self.base_path = base_path or Path.cwd()
        self.included_files = included_files or set()
        self.current_token: Token = self.lexer.next_token()

    def _error(self, message: str, token: Token | None = None) -> ParseError:
        return ParseError(message, token or self.current_token, self.filename)

    def _advance(self) -> Token:
        """Advance to next token and return previous."""
        previous = self.current_token
        if previous.type != TokenType.EOF:
            self.current_token = self.lexer.next_token()
        return previous

    def _expect(self, token_type: TokenType, message: str = "") -> Token:
        """Expect current token to be of given type, advance and return it."""
        if self.current_token.type != token_type:
            raise self._error(
                message or f"Expected {token_type.name}, got {self.current_token.type.name}"
            )
        return self._advance()

    def _check(self, token_type: TokenType) -> bool:
        return self.current_token.type == token_type

    def parse(self) -> ConfigDocument:
        """Parse the entire configuration document."""
        doc = ConfigDocument(filename=self.filename)

        while not self._check(TokenType.EOF):
            if self._check(TokenType.INCLUDE):
                doc.merge(self._parse_include())
            elif self._check(TokenType.IDENTIFIER):
                result = self._parse_block_or_directive()
                if isinstance(result, Block):
                    doc.blocks.append(result)
                else:
                    doc.directives.append(result)
            else:
                raise self._error(
                    f"Expected block, directive, or include; got {self.current_token.type.name}"
                )

        return doc

    def _parse_include(self) -> ConfigDocument:
        """Parse an include directive and load the included file(s)."""
        include_token = self._expect(TokenType.INCLUDE)
        path_token = self._expect(TokenType.STRING, "Expected file path after 'include'")
        self._expect(TokenType.SEMICOLON, "Expected ';' after include path")

        pattern = str(path_token.value)
        if not Path(pattern).is_absolute():
            pattern = str(self.base_path / pattern)

        # No match is not an error
        merged = ConfigDocument()
        for path in sorted(glob_module.glob(pattern)):
            path_obj = Path(path)
            resolved = str(path_obj.resolve())

            if resolved in self.included_files:
                raise self._error(f"Circular include detected: {path}", include_token)

            parser = ConfigParser(
                source=path_obj.read_text(),
                filename=path,
                base_path=path_obj.parent,
                included_files=self.included_files | {resolved},
            )
            merged.merge(parser.parse())

        return merged

    def _parse_block_or_directive(self) -> Block | Directive:
        """Parse either a block or a directive."""
        name_token = self._expect(TokenType.IDENTIFIER)
        name = str(name_token.value)

        values: list[Any] = []
        while self.current_token.type in self.VALUE_TYPES:
            values.append(self._advance().value)

        if self._check(TokenType.LBRACE):
            if len(values) > 1 or (values and not isinstance(values[0], str)):
                raise self._error(
                    f"Block '{name}' takes at most one string name before '{{'"
                )
            block_name = values[0] if values else None
            return self._parse_block_body(name, block_name, name_token)

        if self._check(TokenType.SEMICOLON):
            self._advance()
            return Directive(name=name, values=values, line=name_token.line, column=name_token.column)

        raise self._error(f"Expected '{{' or ';' after directive '{name}'")

    def _parse_block_body(self, type_name: str, name: str | None, start: Token) -> Block:
        """Parse the body of a block (from the opening brace)."""
        self._expect(TokenType.LBRACE)

        block = Block(type=type_name, name=name, line=start.line, column=start.column)

        while not self._check(TokenType.RBRACE) and not self._check(TokenType.EOF):
            if self._check(TokenType.INCLUDE):
                included = self._parse_include()
                block.directives.extend(included.directives)
                block.blocks.extend(included.blocks)
            elif self._check(TokenType.IDENTIFIER):
                result = self._parse_block_or_directive()
                if isinstance(result, Block):
                    block.blocks.append(result)
                else:
                    block.directives.append(result)
            else:
                raise self._error(f"Expected directive or nested block in '{type_name}' block")

        self._expect(TokenType.RBRACE, f"Expected '}}' to close '{type_name}' block")

        return block


def parse_config(
    source: str, filename: str = "<string>", base_path: Path | None = None
) -> ConfigDocument:
    """
    Parse a configuration string.

    Args:
        source: Configuration source text
        filename: Filename for error messages
        base_path: Base path for resolving include statements

    Returns:
        Parsed ConfigDocument
    """
    return ConfigParser(source, filename, base_path).parse()


def parse_config_file(path: str | Path) -> ConfigDocument:
    """Parse a configuration file."""
    path = Path(path)
    return parse_config(path.read_text(), str(path), path.parent)
