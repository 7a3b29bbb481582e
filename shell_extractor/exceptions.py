class ShellExtractorError(Exception):
    """Base class for hard failures surfaced by the shell extractor."""


class DecodeError(ShellExtractorError):
    """Input bytes are not a decodable image."""


class EncodeError(ShellExtractorError):
    """Processed pixels could not be serialized to PNG."""
