"""
Jmol Movie Job Module.

Job, runners, virtual display management and completion marker for
creating rotating movies of molecular structures with Jmol and ffmpeg.
"""

from .display import DisplayHandle, XvfbDisplayManager
from .finish import PROGRAM_NAME, CompletionReporter
from .job import JmolMovieJob, RunResult
from .runner import FakeJmolMovieJobRunner, JmolMovieJobRunner

__all__ = [
    "CompletionReporter",
    "DisplayHandle",
    "FakeJmolMovieJobRunner",
    "JmolMovieJob",
    "JmolMovieJobRunner",
    "PROGRAM_NAME",
    "RunResult",
    "XvfbDisplayManager",
]
