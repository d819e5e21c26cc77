from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Union

from .constants import DEFAULT_MAX_DOC_LENGTH, PROTOCOL_MAX_DOC_LENGTH
from .errors import ConfigError

_CEILING_MESSAGE = f"max_record_length exceeds protocol limit of {PROTOCOL_MAX_DOC_LENGTH} bytes"


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a byte count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def _check_max_record_length(value: Any) -> int:
    if value is None:
        return DEFAULT_MAX_DOC_LENGTH
    if not _is_number(value):
        raise ConfigError("max_record_length must be a number")
    if value == 0:
        return DEFAULT_MAX_DOC_LENGTH
    if value > PROTOCOL_MAX_DOC_LENGTH:
        raise ConfigError(_CEILING_MESSAGE)
    if math.isinf(value):
        raise ConfigError("max_record_length must be a number")
    return int(value)


def _check_max_buffered_bytes(value: Any) -> int | None:
    if value is None:
        return None
    if not _is_number(value):
        raise ConfigError("max_buffered_bytes must be a number")
    if value == 0 or value == math.inf:
        return None
    if math.isinf(value):
        raise ConfigError("max_buffered_bytes must be a number")
    return int(value)


@dataclass(frozen=True, slots=True)
class StreamOptions:
    """Validated stream options.

    None or 0 for either limit selects its default: 16 MiB for
    max_record_length, unbounded for max_buffered_bytes. An infinite
    max_buffered_bytes is unbounded too.
    """

    emit_raw: bool = False
    max_record_length: int = DEFAULT_MAX_DOC_LENGTH
    max_buffered_bytes: int | None = None

    def __post_init__(self) -> None:
        emit_raw = self.emit_raw
        if emit_raw is None:
            emit_raw = False
        elif not isinstance(emit_raw, bool):
            raise ConfigError("emit_raw must be a boolean")

        # frozen, so normalised values go through object.__setattr__
        object.__setattr__(self, "emit_raw", emit_raw)
        object.__setattr__(self, "max_record_length", _check_max_record_length(self.max_record_length))
        object.__setattr__(self, "max_buffered_bytes", _check_max_buffered_bytes(self.max_buffered_bytes))


OptionsLike = Union[StreamOptions, Mapping[str, Any], None]

_OPTION_NAMES = frozenset(f.name for f in fields(StreamOptions))


def validate_options(options: OptionsLike = None) -> StreamOptions:
    """Turn user supplied options into a StreamOptions.

    Accepts None, a StreamOptions (already validated on construction) or a
    mapping of option names.
    """
    if options is None:
        return StreamOptions()
    if isinstance(options, StreamOptions):
        return options
    if not isinstance(options, Mapping):
        raise ConfigError("options must be a mapping")

    for name in options:
        if name not in _OPTION_NAMES:
            raise ConfigError(f"unknown option: {name}")

    return StreamOptions(
        emit_raw=options.get("emit_raw"),
        max_record_length=options.get("max_record_length"),
        max_buffered_bytes=options.get("max_buffered_bytes"),
    )
