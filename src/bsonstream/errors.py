from __future__ import annotations


class BSONStreamError(Exception):
    pass


class ConfigError(BSONStreamError, TypeError):
    """Invalid options passed when constructing a stream."""


class FramingError(BSONStreamError):
    """The byte stream does not frame into valid BSON documents."""


class InvalidLength(FramingError):
    pass


class LimitExceeded(FramingError):
    pass


class InvalidTermination(FramingError):
    pass


class StreamClosed(BSONStreamError):
    """Bytes were written after end() or after a fatal stream error."""
