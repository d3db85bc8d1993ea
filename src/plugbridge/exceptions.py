"""
exceptions:
    Custom exception hierarchy for plugbridge.

All plugbridge-specific exceptions inherit from PlugbridgeError, making it
easy to catch every engine error at the CLI layer.

Usage:
    - Raise specific exceptions in library code
    - Catch PlugbridgeError at CLI boundaries
    - Convert to user-friendly messages and exit codes at the CLI layer

Nothing in the engine retries on these errors. Every install step is
idempotent, so the recovery path is always to fix the cause and re-run the
same operation.
"""

from pathlib import Path
from typing import Optional


class PlugbridgeError(Exception):
    """Base exception for all plugbridge-specific errors.

    ``step`` is filled in by the marketplace installer with the name of the
    step that failed.
    """

    step: Optional[str] = None


# =============================================================================
# Catalog and platform exceptions
# =============================================================================


class CatalogError(PlugbridgeError):
    """Raised when the static extension catalog violates its invariants."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid extension catalog: {reason}")


class UnknownExtensionError(PlugbridgeError):
    """Raised when an extension name is not in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Extension '{name}' not found in catalog")


class UnknownPlatformError(PlugbridgeError):
    """Raised when an unknown platform is specified."""

    def __init__(self, value: str, supported: list[str]):
        self.value = value
        self.supported = supported
        super().__init__(f"Unknown platform: {value}. Supported: {supported}")


class UnsupportedPlatformError(PlugbridgeError):
    """Raised when an extension is not available for a platform."""

    def __init__(self, extension: str, platform: str):
        self.extension = extension
        self.platform = platform
        super().__init__(f"Extension '{extension}' is not supported on {platform}")


# =============================================================================
# Content exceptions
# =============================================================================


class FormatError(PlugbridgeError):
    """Raised when a source document has malformed frontmatter or body."""

    def __init__(self, path: Optional[Path | str], reason: str):
        self.path = Path(path) if isinstance(path, str) else path
        self.reason = reason
        location = str(path) if path else "<string>"
        super().__init__(f"Malformed document {location}: {reason}")


class IoError(PlugbridgeError):
    """Raised when a filesystem read, write or copy fails."""

    def __init__(self, path: Path | str, cause: Optional[BaseException | str] = None):
        self.path = Path(path) if isinstance(path, str) else path
        self.cause = cause
        message = f"I/O error at {path}"
        if cause:
            message += f": {cause}"
        super().__init__(message)


class RegistryCorruption(PlugbridgeError):
    """Raised when an existing registry file is not valid structured data.

    Never repaired automatically; the file has to be fixed by hand.
    """

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Registry file {path} is corrupt: {reason}")


# =============================================================================
# External command exceptions
# =============================================================================


class ExternalCommandError(PlugbridgeError):
    """Raised when git or another subprocess fails."""

    def __init__(
        self,
        command: list[str] | str,
        returncode: Optional[int] = None,
        output: str = "",
    ):
        self.command = command if isinstance(command, str) else " ".join(command)
        self.returncode = returncode
        self.output = output

        parts = [f"Command '{self.command}' failed"]
        if returncode is not None:
            parts.append(f"exit code {returncode}")
        message = " - ".join(parts)
        if output:
            message += f"\n{output.rstrip()}"
        super().__init__(message)


class DependencyInstallError(ExternalCommandError):
    """Raised when a package manager returns non-zero.

    The filesystem is left as it is for inspection.
    """
