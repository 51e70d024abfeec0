"""
Completion marker for callers of the movie program.

The marker file <program>_finished.txt in the job folder is written once
per invocation, whether the job succeeded or not, and tells callers the
movie path or the reason of the failure. Its absence or a "Failed" line
means the job failed.
"""

import logging
import os

from jmol3dmovie.utils.utils import strip_extension

logger = logging.getLogger(__name__)

PROGRAM_NAME = "Jmol_3Dmovie"


class CompletionReporter:
    """
    Writes the completion marker and restores the working directory.

    Args:
        program_name (str): Name of the program; its basename without
            extension names the marker file.
        folder (str): Folder the marker is written to. Defaults to the
            current working directory.
    """

    MARKER_SUFFIX = "_finished.txt"

    def __init__(self, program_name=PROGRAM_NAME, folder=None):
        self.program_name = (
            strip_extension(os.path.basename(program_name)) or "null"
        )
        self.start_directory = os.getcwd()
        if folder is None:
            folder = self.start_directory
        self.folder = os.path.abspath(folder)
        self.finished = False

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}<program={self.program_name}, "
            f"folder={self.folder}>"
        )

    @property
    def marker_filename(self):
        return f"{self.program_name}{self.MARKER_SUFFIX}"

    @property
    def marker_path(self):
        return os.path.join(self.folder, self.marker_filename)

    def format(self, result, job_name):
        """
        Marker text for a result.

        Args:
            result (RunResult): Outcome of the job.
            job_name (str): Name of the job, may be empty.

        Returns:
            str: Marker file contents.
        """
        name = self.program_name
        lines = [f"{name}: Finished for job_name='{job_name or ''}'."]
        if result.succeeded:
            lines.append(
                f"{name}: movie saved to: '{result.output_movie_path}'."
            )
            lines.append(f"{name}: Success.")
        else:
            kind = f"{result.error_kind}: " if result.error_kind else ""
            lines.append(f"{name}: Failed: {kind}{result.error_message}.")
        return "\n".join(lines) + "\n"

    def finish(self, result, job_name=None):
        """
        Write the marker file and restore the working directory.

        Only the first call writes; later calls are ignored with a warning.

        Args:
            result (RunResult): Outcome of the job.
            job_name (str, optional): Name of the job.

        Returns:
            str: Path of the marker file.
        """
        if self.finished:
            logger.warning(
                f"{self.marker_filename} was already written, not rewriting."
            )
            return self.marker_path

        if os.path.exists(self.marker_path):
            logger.info(
                f"Found existing file {self.marker_path} before starting, "
                f"overwriting it"
            )
        with open(self.marker_path, "w") as f:
            f.write(self.format(result, job_name))
        self.finished = True
        logger.info(f"Created {self.marker_path}")

        if os.getcwd() != self.start_directory:
            logger.debug(f"Changing back to {self.start_directory}")
            os.chdir(self.start_directory)
        return self.marker_path
