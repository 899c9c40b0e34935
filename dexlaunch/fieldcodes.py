"""
Exec key interpretation.

Splits an Exec value into tokens, classifies each token as a literal argument
or a field code, and substitutes field codes with runtime values.
Field codes: https://specifications.freedesktop.org/desktop-entry-spec/latest/exec-variables.html
"""

import os
import re
from enum import Enum
from typing import List, Optional, Sequence, Union

from dexlaunch.errors import (
    DeprecatedFieldCode,
    EmptyExecString,
    UnknownFieldCode,
    UnmatchedQuote,
)
from dexlaunch.entry import DesktopEntryLike
from dexlaunch.misc import print_debug
from dexlaunch.params import ASCII_WHITESPACE, DEPRECATED_FIELD_CODES


class FieldCode(Enum):
    "Supported field codes"

    SINGLE_FILE_NAME = "%f"
    FILE_LIST = "%F"
    SINGLE_URL = "%u"
    URL_LIST = "%U"
    ICON_KEY = "%i"
    TRANSLATED_NAME = "%c"
    DESKTOP_FILE_LOCATION = "%k"


class Arg(str):
    "Literal command line argument"

    def __repr__(self):
        return f"Arg({str.__repr__(self)})"


Token = Union[FieldCode, Arg]

_FIELD_CODES = {code.value: code for code in FieldCode}
_SPLIT = re.compile(f"[{re.escape(ASCII_WHITESPACE)}]+")


def classify(token: str) -> Token:
    "Takes single Exec token, returns FieldCode or Arg, raises on deprecated or unknown codes"
    if token in _FIELD_CODES:
        return _FIELD_CODES[token]
    if token in DEPRECATED_FIELD_CODES:
        raise DeprecatedFieldCode(token)
    if token.startswith("%"):
        raise UnknownFieldCode(token)
    return Arg(token)


def strip_quotes(exec_string: str) -> str:
    """
    Strips one pair of double quotes wrapping the whole string.
    Raises UnmatchedQuote if quotes do not pair up.
    """
    # escaped quotes do not count
    if exec_string.replace('\\"', "").count('"') % 2:
        raise UnmatchedQuote(exec_string)
    if len(exec_string) >= 2 and exec_string[0] == exec_string[-1] == '"':
        return exec_string[1:-1]
    return exec_string


def tokenize(exec_string: str) -> List[Token]:
    "Splits Exec string on ASCII whitespace, returns list of classified tokens in original order"
    stripped = strip_quotes(exec_string)
    tokens = [classify(token) for token in _SPLIT.split(stripped) if token]
    print_debug("tokens", tokens)
    return tokens


def current_locale() -> Optional[str]:
    "Returns LANG without encoding suffix, or None if unset"
    lang = os.getenv("LANG")
    if not lang:
        return None
    return lang.split(".", maxsplit=1)[0]


def substitute(
    tokens: Sequence[Token], uris: Sequence[str], entry: DesktopEntryLike
) -> List[str]:
    """
    Replaces field codes with values from uris and entry.
    Codes without a value are dropped. Raises EmptyExecString if nothing remains.
    """
    args = []
    for token in tokens:
        if isinstance(token, Arg):
            args.append(str(token))
        elif token in (FieldCode.SINGLE_FILE_NAME, FieldCode.SINGLE_URL):
            if uris:
                args.append(uris[0])
        elif token in (FieldCode.FILE_LIST, FieldCode.URL_LIST):
            if uris:
                args.append(" ".join(uris))
        elif token is FieldCode.ICON_KEY:
            icon = entry.icon()
            if icon:
                args.append(icon)
        elif token is FieldCode.TRANSLATED_NAME:
            locale = current_locale()
            name = entry.name(locale) if locale else None
            if name:
                args.append(name)
        elif token is FieldCode.DESKTOP_FILE_LOCATION:
            args.append(str(entry.file_path))

    print_debug("substituted args", args)
    if not args:
        raise EmptyExecString()
    return args
