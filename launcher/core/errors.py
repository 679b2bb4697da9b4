"""Error types raised by the launch pipeline."""


class LauncherError(Exception):
    """Base error carrying the failed operation and an optional cause."""

    def __init__(self, op: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.op = op
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        text = f"{self.op}: {self.message}"
        if self.cause is not None:
            text += f" ({self.cause})"
        return text


class KeyLoadError(LauncherError):
    """A signing or encryption key could not be loaded.

    ``op`` is one of ``read``, ``decode``, ``parse``, ``cast`` or ``marshal``.
    """


class SchemaResolutionError(LauncherError):
    """A questionnaire schema could not be fetched, validated or parsed."""


class SchemaNotFoundError(SchemaResolutionError):
    """No available schema has the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__("lookup", f"Survey not found: {name}")
        self.name = name


class TokenIssuanceError(LauncherError):
    """Signing or encrypting the launch token failed.

    ``op`` is one of ``signer``, ``encryptor``, ``sign`` or ``encrypt``.
    """
