"""Reading and writing simple ``key : value`` configuration files."""

from __future__ import annotations

import datetime
import logging
import math
import re
from numbers import Integral
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)

FORMAT_VERSION = "2.1.2"

_WHITESPACE = ", \t\n"
_ITEM_PATTERN = re.compile(r"[^, \t\n]+")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


class ConfigError(Exception):
    """Raised when a config file cannot be read, written or interpreted."""


def _parse_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"no integer in {text!r}")
    value = int(match.group(1))
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"integer out of range in {text!r}")
    return value


def _parse_float(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"no number in {text!r}")
    literal = match.group(1)
    value = float(literal)
    if math.isinf(value) and "inf" not in literal.lower():
        raise ValueError(f"number out of range in {text!r}")
    return value


def _read_array(text: str, pos: int, key: str, convert: Callable[[str], Any], kind: str) -> tuple[list, int]:
    """Read values after the opening brace at ``pos`` up to a closing brace.

    Returns the values and the position at which reading stopped (-1 at end).
    """
    values = []
    while pos >= 0:
        match = _ITEM_PATTERN.search(text, pos + 1)
        if match is None:
            return values, -1
        item = match.group()
        pos = match.end() if match.end() < len(text) else -1
        if item.startswith("}"):
            break
        try:
            values.append(convert(item))
        except ValueError as exc:
            raise ConfigError(f"cannot parse config value ({key} : {item}) as {kind}: {exc}") from exc
    return values, pos


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "y" if value else "n"
    if isinstance(value, Integral):
        return str(int(value))
    if isinstance(value, str):
        return value
    return repr(float(value))


def _is_sequence(value: Any) -> bool:
    return not isinstance(value, (str, bytes)) and hasattr(value, "__iter__")


def _format_value(value: Any) -> str:
    if not _is_sequence(value):
        return _format_scalar(value)
    items = list(value)
    if not items:
        return "{ }"
    return "{ " + ", ".join(_format_value(item) for item in items) + " }"


class ConfigParser:
    """Key/value pairs from a config file, with comment lines preserved."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path: Path | None = None
        self._data: dict[str, str] = {}
        self._comments: list[str] = []
        if path is not None:
            self.read(path)

    def read(self, path: str | Path) -> int:
        """Parse a config file, replacing current contents; return the number of pairs."""
        path = Path(path)
        logger.info("Looking for config file: %s ..", path)
        try:
            with open(path, encoding="utf-8", errors="surrogateescape", newline="") as handle:
                lines = handle.readlines()
        except OSError as exc:
            raise ConfigError(f"could not open config file {path} for reading: {exc}") from exc

        self.path = path
        self._data.clear()
        self._comments.clear()
        for raw in lines:
            line = raw[:-1] if raw.endswith("\n") else raw
            if len(line) < 3 or line.startswith("##"):
                continue
            if line[0] in "#%":
                self._comments.append(line)
                continue
            delim = line.find(":")
            if delim < 0:
                continue
            key = line[:delim].rstrip(_WHITESPACE)
            value = line[delim + 1 :].lstrip(_WHITESPACE).replace("\r", "")
            self._data[key] = value
            logger.debug("Extracted key: |%s|  val: |%s|", key, value)

        logger.info("Config file parsed (%d key/value pairs).", len(self._data))
        return len(self._data)

    def write(self, path: str | Path | None = None) -> int:
        """Write all pairs (sorted by key) and comments; return the bytes written."""
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ConfigError("no config file path given for writing")

        stamp = datetime.date.today().strftime("%b %d %Y")
        parts = [f"## trackball v{FORMAT_VERSION} config file (written {stamp})\n"]
        parts.extend(f"{key:<16} : {value}\n" for key, value in sorted(self._data.items()))
        if self._comments:
            parts.append("\n")
            parts.extend(f"{comment}\n" for comment in self._comments)
        payload = "".join(parts).encode("utf-8", errors="surrogateescape")

        try:
            with open(target, "wb") as handle:
                handle.write(payload)
        except OSError as exc:
            raise ConfigError(f"could not open config file {target} for writing: {exc}") from exc

        logger.debug("Wrote %d bytes to disk!", len(payload))
        return len(payload)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: str, default: str = "") -> str:
        """The raw value for key, or default when absent."""
        value = self._data.get(key)
        if value is None:
            logger.debug("Key (%s) not found.", key)
            return default
        return value

    def get_str(self, key: str) -> str | None:
        """The raw value for key, or None when absent."""
        value = self._data.get(key)
        if value is None:
            logger.debug("Key (%s) not found.", key)
        return value

    def _convert(self, key: str, convert: Callable[[str], Any], kind: str) -> Any:
        text = self.get_str(key)
        if text is None:
            return None
        try:
            return convert(text)
        except ValueError as exc:
            raise ConfigError(f"cannot parse config value ({key} : {text}) as {kind}: {exc}") from exc

    def get_int(self, key: str) -> int | None:
        """The value as an integer, or None when absent."""
        return self._convert(key, _parse_int, "INT")

    def get_float(self, key: str) -> float | None:
        """The value as a float, or None when absent."""
        return self._convert(key, _parse_float, "DBL")

    def get_bool(self, key: str) -> bool | None:
        """The value as a boolean (Y/y/1 or N/n/0), or None when absent."""
        text = self.get_str(key)
        if text is None:
            return None
        if text in ("Y", "y", "1"):
            return True
        if text in ("N", "n", "0"):
            return False
        raise ConfigError(f"cannot parse config value ({key} : {text}) as BOOL")

    def _get_list(self, key: str, convert: Callable[[str], Any], kind: str) -> list | None:
        text = self.get_str(key)
        if text is None:
            return None
        start = text.find("{")
        if start < 0:
            return []
        values, _ = _read_array(text, start, key, convert, kind)
        return values

    def get_int_list(self, key: str) -> list[int] | None:
        """A braced list of integers, or None when absent."""
        return self._get_list(key, _parse_int, "INT")

    def get_float_list(self, key: str) -> list[float] | None:
        """A braced list of floats, or None when absent."""
        return self._get_list(key, _parse_float, "DBL")

    def get_int_lists(self, key: str) -> list[list[int]] | None:
        """A braced list of braced integer lists, or None when absent."""
        text = self.get_str(key)
        if text is None:
            return None
        result: list[list[int]] = []
        pos = text.find("{")
        while pos >= 0:
            pos = text.find("{", pos + 1)
            if pos < 0:
                break
            poly, pos = _read_array(text, pos, key, _parse_int, "INT")
            if poly:
                result.append(poly)
        return result

    def add(self, key: str, value: Any) -> None:
        """Set a value; numbers, booleans, strings and (nested) sequences are accepted."""
        self._data[key] = _format_value(value)

    def dump(self) -> str:
        """All pairs as text, one per line; also logged at debug level."""
        text = "".join(f"\t{key}\t: {value}\n" for key, value in sorted(self._data.items()))
        logger.debug("Config file (%s):\n%s", self.path, text)
        return text