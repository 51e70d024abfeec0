"""
Exceptions raised while running a movie job.

Every error that ends a job is a MovieJobError. The runner turns these
into a failed RunResult, and the message ends up in the completion
marker file.
"""


class MovieJobError(Exception):
    """Base class for errors that end a movie job."""

    @property
    def kind(self):
        return type(self).__name__


class ConfigurationError(MovieJobError):
    """Missing or invalid input selection or program configuration."""


class ExecutableNotFoundError(ConfigurationError):
    """A configured external program cannot be found."""


class StartupError(MovieJobError):
    """The virtual display failed to start or its output was unparsable."""


class RenderError(MovieJobError):
    """The renderer could not be launched or did not finish in time."""


class EncodeError(MovieJobError):
    """No movie file exists after running the encoder."""


class EmptyOutputError(MovieJobError):
    """The encoder produced a zero-byte movie file."""
