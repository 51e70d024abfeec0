"""
Jmol rotating movie job.

Defines the JmolMovieJob, which turns a Jmol state script or a structure
file (e.g. PDB) into a movie of the structure rotating about the Y axis,
and the RunResult reported once the job has ended.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from jmol3dmovie.jobs.exceptions import ConfigurationError, MovieJobError
from jmol3dmovie.jobs.job import Job
from jmol3dmovie.settings.profiles import (
    get_quality_profile,
    profile_from_large_file,
)
from jmol3dmovie.utils.utils import split_path, strip_extension

logger = logging.getLogger(__name__)

STATE_SCRIPT = "state_script"
STRUCTURE_FILE = "structure_file"
INPUT_KINDS = (STATE_SCRIPT, STRUCTURE_FILE)

DEFAULT_OUTPUT_FORMAT = "mp4"
OUTPUT_FORMATS = ("mp4", "avi")


def normalize_output_format(output_format):
    """
    Reduce a requested output format to "avi" or "mp4".

    Only "avi" (any case, surrounding whitespace ignored) selects avi;
    everything else, including None, gives the default mp4.
    """
    if output_format is None:
        return DEFAULT_OUTPUT_FORMAT
    normalized = output_format.strip().lower()
    if normalized == "avi":
        return "avi"
    if normalized and normalized != DEFAULT_OUTPUT_FORMAT:
        logger.warning(
            f"Unknown output format '{output_format}', "
            f"using {DEFAULT_OUTPUT_FORMAT}."
        )
    return DEFAULT_OUTPUT_FORMAT


def select_input(state_script=None, structure_file=None):
    """
    Choose the input file; a state script wins over a structure file.

    Returns:
        tuple[str, str] or None: (input kind, path as given), or None if
            neither was given.
    """
    if state_script:
        return STATE_SCRIPT, state_script
    if structure_file:
        return STRUCTURE_FILE, structure_file
    return None


def derive_job_name(state_script=None, structure_file=None):
    """Job name of the chosen input: its basename without extension."""
    selected = select_input(state_script, structure_file)
    if selected is None:
        return ""
    _, filename = split_path(selected[1])
    return strip_extension(filename)


@dataclass(frozen=True)
class RunResult:
    """
    Outcome of one movie job.

    Attributes:
        succeeded (bool): Whether a non-empty movie file was produced.
        error_message (str): Human-readable reason of the failure.
        error_kind (str | None): Name of the error class, e.g.
            "EmptyOutputError".
        output_movie_path (str | None): Absolute path of the movie.
    """

    succeeded: bool
    error_message: str = ""
    error_kind: Optional[str] = None
    output_movie_path: Optional[str] = None

    @classmethod
    def success(cls, output_movie_path):
        return cls(succeeded=True, output_movie_path=output_movie_path)

    @classmethod
    def failure(cls, error):
        if isinstance(error, MovieJobError):
            kind = error.kind
        else:
            kind = type(error).__name__
        return cls(succeeded=False, error_message=str(error), error_kind=kind)


class JmolMovieJob(Job):
    """
    Job creating a rotating movie of a molecular structure with Jmol.

    Attributes:
        TYPE (str): Job type identifier ('jmol_movie').
        PROGRAM (str): Program identifier ('Jmol').
        label (str): Job name, derived from the input filename.
        input_kind (str): STATE_SCRIPT or STRUCTURE_FILE.
        input_filename (str): Bare filename of the input in the job folder.
        output_format (str): 'mp4' or 'avi'.
        quality_profile (QualityProfile): Frames, image size, frame rate
            and bitrate of the movie.
        jobrunner (JobRunner): Execution backend for running the job.
    """

    TYPE = "jmol_movie"
    PROGRAM = "Jmol"

    FINAL_SCRIPT = "Jmol_3Dmovie_final.spt"
    STILLS_SCRIPT = "Jmol_3Dmovie_stills.spt"

    def __init__(
        self,
        label,
        input_filename,
        input_kind=STRUCTURE_FILE,
        output_format=DEFAULT_OUTPUT_FORMAT,
        quality_profile=None,
        jobrunner=None,
        folder=None,
        skip_completed=False,
        **kwargs,
    ):
        super().__init__(
            label=label,
            jobrunner=jobrunner,
            folder=folder,
            skip_completed=skip_completed,
            **kwargs,
        )
        if input_kind not in INPUT_KINDS:
            raise ValueError(
                f"Input kind must be one of {INPUT_KINDS}, got {input_kind}."
            )
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Output format must be one of {OUTPUT_FORMATS}, "
                f"got {output_format}."
            )
        self.input_filename = input_filename
        self.input_kind = input_kind
        self.output_format = output_format
        self.quality_profile = get_quality_profile(quality_profile)

    @property
    def input_path(self):
        return os.path.join(self.folder, self.input_filename)

    @property
    def is_state_script(self):
        return self.input_kind == STATE_SCRIPT

    @property
    def movie_filename(self):
        """Movie name, e.g. demo_3200k.mp4."""
        return (
            f"{self.label}_{self.quality_profile.bitrate_tag}"
            f".{self.output_format}"
        )

    @property
    def movie_file(self):
        return os.path.join(self.folder, self.movie_filename)

    @property
    def jmol_script(self):
        """Script Jmol is run with: the merged script or the stills script."""
        if self.is_state_script:
            return self.FINAL_SCRIPT
        return self.STILLS_SCRIPT

    @property
    def jmol_logfile(self):
        return os.path.join(self.folder, f"{self.label}.jmol.log")

    @property
    def ffmpeg_logfile(self):
        return os.path.join(self.folder, f"{self.label}.ffmpeg.log")

    def _job_is_complete(self):
        return (
            os.path.isfile(self.movie_file)
            and os.path.getsize(self.movie_file) > 0
        )

    def _completed_result(self):
        return RunResult.success(self.movie_file)

    def _run(self, **kwargs):
        """
        Run the job and report its outcome.

        Errors that end the job are logged and returned as a failed
        RunResult rather than raised.

        Returns:
            RunResult: Outcome of the job.
        """
        logger.info(f"Running job {self} with jobrunner {self.jobrunner}")
        try:
            self.jobrunner.run(self, **kwargs)
        except MovieJobError as e:
            logger.error(f"Job {self.label} failed: {e.kind}: {e}")
            return RunResult.failure(e)
        logger.info(f"Movie saved to {self.movie_file}")
        return RunResult.success(self.movie_file)

    @classmethod
    def from_filenames(
        cls,
        state_script=None,
        structure_file=None,
        output_format=None,
        large_file=False,
        jobrunner=None,
        **kwargs,
    ):
        """
        Create a movie job from the user-supplied input files.

        The state script is used when given, otherwise the structure file.
        Its directory becomes the job folder (the current directory if it
        has none) and its basename without extension the job label.

        Args:
            state_script (str, optional): Jmol state script path.
            structure_file (str, optional): Structure file path, e.g. PDB.
            output_format (str, optional): 'avi' or 'mp4' (default).
            large_file (bool): Use the large quality profile.
            jobrunner (JobRunner, optional): Runner for the job.
            **kwargs: Additional arguments for job configuration.

        Returns:
            JmolMovieJob: The configured job.

        Raises:
            ConfigurationError: If no input was given, or the chosen one
                is not a readable file.
        """
        selected = select_input(state_script, structure_file)
        if selected is None:
            raise ConfigurationError("Need either .spt or PDB file")
        input_kind, path = selected

        directory, filename = split_path(path)
        folder = os.path.abspath(directory)
        input_path = os.path.join(folder, filename)
        logger.info(
            f"Input {input_kind}: folder={folder}, filename={filename}"
        )
        if not os.path.isfile(input_path):
            raise ConfigurationError(
                f"dir_path={folder}, {input_kind}={filename}, "
                f"can't find such file, abort"
            )
        if not os.access(input_path, os.R_OK):
            raise ConfigurationError(
                f"dir_path={folder}, {input_kind}={filename}, "
                f"file is not readable, abort"
            )

        output_format = normalize_output_format(output_format)
        quality_profile = profile_from_large_file(large_file)
        label = strip_extension(filename)
        logger.info(
            f"Job name: {label}, format: {output_format}, "
            f"quality profile: {quality_profile.name}"
        )
        return cls(
            label=label,
            input_filename=filename,
            input_kind=input_kind,
            output_format=output_format,
            quality_profile=quality_profile,
            jobrunner=jobrunner,
            folder=folder,
            **kwargs,
        )
