"""A small sed dialect for renaming and dropping keys.

Supported forms::

    s/pattern/replacement/[g]
    /address/ s/pattern/replacement/[g]
    d
    /address/ d

Any character other than whitespace or a backslash may be used as the
delimiter; a backslash before it escapes it. Patterns use Python ``re``
syntax and replacements ``re.sub`` syntax.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern, Union

from .errors import FilterError


class SedError(Enum):
    INVALID_COMMAND = "invalid command"
    INVALID_REGEX_ADDRESS = "invalid regex address"
    MISSING_CLOSING_DELIMITER = "missing closing delimiter"
    INVALID_FLAG = "invalid flag"
    COMMAND_EXPECTED = "command expected"
    INVALID_SYNTAX = "invalid syntax"
    BUG = "bug"


class TokenType(Enum):
    ADDRESS = "address"
    COMMAND = "command"
    DELIMITER = "delimiter"
    PATTERN = "pattern"
    FLAG = "flag"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str


class SedParseError(FilterError):
    """A sed expression could not be parsed.

    Attributes:
        error: Category of the failure.
        detail: What went wrong.
        expression: The offending expression.
    """

    def __init__(self, error: SedError, detail: str, expression: str = ""):
        super().__init__(f"{detail}. input='{expression}'")
        self.error = error
        self.detail = detail
        self.expression = expression


class Tokenizer:
    """Split a sed expression into tokens."""

    def __init__(self, text: str):
        self.text = text
        self.position = 0
        self.delimiter: Optional[str] = None
        self.last: Optional[Token] = None

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            token = self._next()
            tokens.append(token)
            self.last = token
            if token.type is TokenType.EOF:
                return tokens

    def _next(self) -> Token:
        text = self.text
        while self.position < len(text):
            ch = text[self.position]
            last_type = None if self.last is None else self.last.type
            if self.last is None and ch == "/":
                return self._address()
            if ch.isalpha() and last_type in (None, TokenType.ADDRESS):
                self.position += 1
                return Token(TokenType.COMMAND, ch)
            if self.delimiter is None and _is_delimiter(ch):
                self.delimiter = ch
                self.position += 1
                return Token(TokenType.DELIMITER, ch)
            if self.delimiter is not None and ch == self.delimiter:
                self.position += 1
                return Token(TokenType.DELIMITER, ch)
            if ch.isalpha() and self.position == len(text) - 1 and last_type is TokenType.DELIMITER:
                self.position += 1
                return Token(TokenType.FLAG, ch)
            if self.delimiter is None:
                self.position += 1
                continue
            return Token(TokenType.PATTERN, self._read_until_delimiter())
        return Token(TokenType.EOF, "")

    def _address(self) -> Token:
        text = self.text
        self.position += 1
        out: List[str] = []
        while self.position < len(text):
            ch = text[self.position]
            if ch == "\\" and self.position + 1 < len(text) and text[self.position + 1] == "/":
                out.append("/")
                self.position += 2
                continue
            if ch == "/":
                self.position += 1
                return Token(TokenType.ADDRESS, "".join(out))
            out.append(ch)
            self.position += 1
        raise SedParseError(SedError.INVALID_REGEX_ADDRESS, "Unterminated regex address", text)

    def _read_until_delimiter(self) -> str:
        text = self.text
        out: List[str] = []
        while self.position < len(text):
            ch = text[self.position]
            if (
                ch == "\\"
                and self.position + 1 < len(text)
                and text[self.position + 1] == self.delimiter
            ):
                out.append(self.delimiter)
                self.position += 2
                continue
            if ch == self.delimiter:
                break
            out.append(ch)
            self.position += 1
        return "".join(out)


def _is_delimiter(ch: str) -> bool:
    return ch != "\\" and ch != "\n" and not ch.isspace()


def _compile(regex: str, expression: str) -> Pattern[str]:
    try:
        return re.compile(regex)
    except re.error as e:
        raise SedParseError(SedError.INVALID_SYNTAX, f"Invalid regex '{regex}': {e}", expression) from e


@dataclass(frozen=True)
class SubstituteCommand:
    address: Optional[Pattern[str]]
    pattern: Pattern[str]
    replacement: str
    replace_all: bool = False

    def execute(self, key: str) -> Optional[str]:
        if self.address is not None and not self.address.search(key):
            return key
        return self.pattern.sub(self.replacement, key, count=0 if self.replace_all else 1)


@dataclass(frozen=True)
class DeleteCommand:
    address: Optional[Pattern[str]] = None

    def execute(self, key: str) -> Optional[str]:
        if self.address is not None and not self.address.search(key):
            return key
        return None


Command = Union[SubstituteCommand, DeleteCommand]


class Parser:
    """Recursive descent over the token list."""

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = Tokenizer(expression).tokenize()
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> None:
        if self.index < len(self.tokens) - 1:
            self.index += 1

    def _error(self, error: SedError, detail: str) -> SedParseError:
        return SedParseError(error, detail, self.expression)

    def parse(self) -> Command:
        address: Optional[Pattern[str]] = None
        if self.current.type is TokenType.ADDRESS:
            address = _compile(self.current.value, self.expression)
            self._advance()
        if self.current.type is not TokenType.COMMAND:
            if address is not None:
                raise self._error(SedError.COMMAND_EXPECTED, "Command expected")
            raise self._error(SedError.INVALID_SYNTAX, "Invalid syntax")
        command = self.current.value
        self._advance()
        if command == "s":
            return self._substitute(address)
        if command == "d":
            if self.current.type is not TokenType.EOF:
                raise self._error(SedError.INVALID_SYNTAX, f"Unexpected input after 'd'. rest='{self._rest()}'")
            return DeleteCommand(address)
        raise self._error(SedError.INVALID_COMMAND, f"Unsupported command: {command}")

    def _rest(self) -> str:
        return "".join(token.value for token in self.tokens[self.index:])

    def _substitute(self, address: Optional[Pattern[str]]) -> SubstituteCommand:
        if self.current.type is not TokenType.DELIMITER:
            raise self._error(SedError.BUG, "Expected delimiter after 's'")
        self._advance()
        pattern = self._read_section()
        replacement = self._read_section()
        replace_all = False
        if self.current.type is TokenType.FLAG:
            if self.current.value != "g":
                raise self._error(SedError.INVALID_FLAG, f"Invalid flag. flag='{self.current.value}'")
            replace_all = True
            self._advance()
        if self.current.type is not TokenType.EOF:
            raise self._error(SedError.INVALID_FLAG, f"Invalid flag. flag='{self._rest()}'")
        return SubstituteCommand(
            address, _compile(pattern, self.expression), replacement, replace_all
        )

    def _read_section(self) -> str:
        parts: List[str] = []
        while self.current.type not in (TokenType.DELIMITER, TokenType.EOF):
            parts.append(self.current.value)
            self._advance()
        if self.current.type is not TokenType.DELIMITER:
            raise self._error(SedError.MISSING_CLOSING_DELIMITER, "Expected closing delimiter")
        self._advance()
        return "".join(parts)


def parse(expression: str) -> Command:
    """Parse a sed expression.

    Args:
        expression: The sed expression.

    Returns:
        A command whose ``execute(key)`` returns the new key, or None to drop.

    Raises:
        SedParseError: If the expression is invalid.
    """
    return Parser(expression).parse()
