"""CLI interface for jmol3dmovie.

Creates a movie of a molecular structure rotating about the Y axis from a
Jmol state script or a structure file, e.g.

    Jmol_3Dmovie -s demo.spt
    Jmol_3Dmovie -i 3CL0.pdb -large_file -f avi

Jmol, Xvfb and ffmpeg are required. A Jmol_3Dmovie_finished.txt file in
the input folder reports the movie path or the reason of the failure.
"""

import logging
import os
import sys

import click

from jmol3dmovie import __version__
from jmol3dmovie.cli.job import (
    click_job_options,
    click_jobrunner_options,
    click_movie_input_options,
)
from jmol3dmovie.cli.logger import logger_options
from jmol3dmovie.jobs.exceptions import ConfigurationError
from jmol3dmovie.jobs.movie import (
    PROGRAM_NAME,
    CompletionReporter,
    JmolMovieJob,
    RunResult,
)
from jmol3dmovie.jobs.movie.job import derive_job_name, select_input
from jmol3dmovie.jobs.runner import JobRunner
from jmol3dmovie.utils.logger import create_logger
from jmol3dmovie.utils.utils import split_path

logger = logging.getLogger(__name__)

USAGE = (
    f"Usage: {PROGRAM_NAME} -large_file -i 3CL0.pdb\n"
    f"Usage: {PROGRAM_NAME} -f avi -large_file -i 3CL0.pdb\n"
    f"Usage: {PROGRAM_NAME} requires state script from Jmol or PDB file "
    f"as input\n"
    f"Usage: Also requires following programs: Jmol, Xvfb, ffmpeg"
)


def _marker_folder(state_script, infile):
    """Folder for the marker when no job could be created."""
    selected = select_input(state_script, infile)
    if selected is not None:
        directory, _ = split_path(selected[1])
        if os.path.isdir(directory):
            return os.path.abspath(directory)
    return os.getcwd()


def run_movie_job(
    state_script=None,
    infile=None,
    output_format=None,
    large_file=False,
    skip_completed=False,
    fake=False,
    debug=False,
    program_name=PROGRAM_NAME,
    **kwargs,
):
    """
    Create the movie and write the completion marker.

    The marker is written on every path out of this function, including
    input errors found before any program is started and unexpected
    errors, which are raised again afterwards.

    Returns:
        RunResult: Outcome of the job.
    """
    reporter = CompletionReporter(program_name=program_name)
    job_name = derive_job_name(state_script, infile)
    result = None
    try:
        job = JmolMovieJob.from_filenames(
            state_script=state_script,
            structure_file=infile,
            output_format=output_format,
            large_file=large_file,
            skip_completed=skip_completed,
        )
        reporter.folder = job.folder
        job_name = job.label
        job.jobrunner = JobRunner.from_job(
            job=job, fake=fake, debug=debug, **kwargs
        )
        logger.debug(f"Job to be run: {job}")
        result = job.run()
    except ConfigurationError as e:
        logger.error(f"{PROGRAM_NAME}: {e}")
        logger.info(USAGE)
        reporter.folder = _marker_folder(state_script, infile)
        result = RunResult.failure(e)
    except BaseException as e:
        logger.exception(f"{PROGRAM_NAME}: unexpected error")
        result = RunResult.failure(e)
        raise
    finally:
        reporter.finish(result, job_name=job_name)
    return result


@click.command(
    name=PROGRAM_NAME,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click_movie_input_options
@click_job_options
@click_jobrunner_options
@logger_options
@click.version_option(__version__, prog_name=PROGRAM_NAME)
@click.pass_context
def entry_point(
    ctx,
    infile,
    state_script,
    output_format,
    large_file,
    skip_completed,
    fake,
    debug,
    stream,
):
    """Create a movie of a structure rotating about the Y axis with Jmol.

    Give either a Jmol state script (-s) or a structure file (-i). The
    movie <name>_3200k.mp4 (or _6400k with -large_file, .avi with -f avi)
    is written next to the input. Exit status is 0 if the movie was
    created and 1 otherwise.
    """
    create_logger(debug=debug, stream=stream)
    logger.info(f"{PROGRAM_NAME}: command='{' '.join(sys.argv)}'")
    logger.info(
        f"{PROGRAM_NAME}: state_script='{state_script}' infile='{infile}' "
        f"format='{output_format}' large_file={large_file}"
    )
    result = run_movie_job(
        state_script=state_script,
        infile=infile,
        output_format=output_format,
        large_file=large_file,
        skip_completed=skip_completed,
        fake=fake,
        debug=debug,
    )
    logger.info(f"{PROGRAM_NAME}: Finished.")
    ctx.exit(0 if result.succeeded else 1)


def main():  # pragma: no cover
    """
    The main function executes on commands:
    `python -m jmol3dmovie.cli.main`, `$ Jmol_3Dmovie` and `$ jmol3dmovie`.
    """
    entry_point()


if __name__ == "__main__":
    main()
