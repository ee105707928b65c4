"""Exceptions raised across agentwatch."""


class AgentwatchError(Exception):
    """Base class for agentwatch errors."""

    pass


class DetectionError(AgentwatchError):
    """Detection related errors."""

    pass


class DetectionCancelled(DetectionError):
    """The detection context was cancelled or its deadline passed."""

    pass


class CommandError(AgentwatchError):
    """An external command could not be run or exited unsuccessfully."""

    def __init__(self, message: str, returncode: int | None = None, output: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class CacheError(AgentwatchError):
    """Detection cache read or write failure."""

    pass


class CatalogError(AgentwatchError):
    """Catalog file could not be read."""

    pass


class RegistryError(AgentwatchError):
    """Latest version lookup failed."""

    pass


class ConfigurationError(AgentwatchError):
    """Configuration related errors."""

    pass
