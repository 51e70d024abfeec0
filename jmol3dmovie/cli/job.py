"""
CLI options for movie jobs.

The single-dash option names (-i, -s, -f, -large_file) are the ones
existing callers of the program use.
"""

import functools

import click


def click_movie_input_options(f):
    """Input file, output format and size options."""

    @click.option(
        "-i",
        "--infile",
        type=str,
        default=None,
        help="Structure file, e.g. PDB. Used if no Jmol state script is "
        "given.",
    )
    @click.option(
        "-s",
        "--state-script",
        type=str,
        default=None,
        help="Jmol state script setting up the initial view. Preferred "
        "over -i.",
    )
    @click.option(
        "-f",
        "--format",
        "output_format",
        type=str,
        default=None,
        help="Movie format, avi or mp4. Anything but avi gives mp4.",
    )
    @click.option(
        "-large_file",
        "--large-file",
        "large_file",
        is_flag=True,
        default=False,
        help="Create a smoother, larger movie (144 frames, 6400k) instead "
        "of the regular one (72 frames, 3200k).",
    )
    @functools.wraps(f)
    def wrapper_common_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_common_options


def click_job_options(f):
    """
    Common job control options.

    Provides the ability to skip jobs whose movie already exists.
    """

    @click.option(
        "-S/-R",
        "--skip-completed/--no-skip-completed",
        is_flag=True,
        default=False,
        type=bool,
        help="Skip the job if its movie already exists. Use -R (default) "
        "to create the movie again.",
    )
    @functools.wraps(f)
    def wrapper_common_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_common_options


def click_jobrunner_options(f):
    """Job runner configuration options."""

    @click.option(
        "--fake/--no-fake",
        default=False,
        type=bool,
        help="If true, fake job runners will be used.",
    )
    @functools.wraps(f)
    def wrapper_common_options(*args, **kwargs):
        return f(*args, **kwargs)

    return wrapper_common_options
