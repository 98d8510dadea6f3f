from __future__ import annotations


class SigningError(RuntimeError):
    """Base class for recoverable failures while preparing a signed PDF."""


class InvalidFileType(SigningError):
    """Raised when a picked file is not the kind of file that slot accepts."""


class RenderingFailure(SigningError):
    """Raised when the first page cannot be laid out for preview."""


class EmbedFailure(SigningError):
    """Raised when the signature image cannot be embedded into the document."""


class SaveFailure(SigningError):
    """Raised when the signed document cannot be written out."""
