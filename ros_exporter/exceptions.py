"""Exception hierarchy for the RouterOS exporter."""


class ExporterError(Exception):
    """Base exception for all exporter errors."""


class ConnectError(ExporterError):
    """Connecting or logging in to the device failed."""


class CommandError(ExporterError):
    """A command sent to the device failed."""

    def __init__(self, message: str, command: str | None = None):
        self.command = command
        super().__init__(message)


class CommandTimeoutError(CommandError):
    """The device did not answer a command within the target timeout."""


class FeatureUnsupportedError(CommandError):
    """The device reports the command as unknown or its package as disabled."""


class CollectionError(ExporterError):
    """A subsystem could not produce its records (empty or failed reply)."""


class FormatError(ExporterError, ValueError):
    """A field value could not be parsed."""
