from pathlib import Path


class ScanDirectoryError(Exception):
    """Indicates that the directory handed to a scan could not be read at all."""

    def __init__(self, message: str, directory: Path, original_exception: Exception):
        """
        Initializes the ScanDirectoryError.

        Args:
            message: A descriptive message explaining the error context.
            directory: The path to the directory where the scanning error occurred.
            original_exception: The original exception that triggered this error.
        """
        super().__init__(f"{message} [Directory: {directory}]")
        self.directory = directory
        self.original_exception = original_exception


class RootDirectoryError(Exception):
    """The monitored root is missing, not a directory, or cannot be listed."""

    def __init__(self, message: str, root: Path, original_exception: Exception):
        super().__init__(f"{message} [Root: {root}]")
        self.root = root
        self.original_exception = original_exception


class TimestampUnavailableError(Exception):
    """The requested timestamp kind is not exposed for this file on this platform."""

    pass
