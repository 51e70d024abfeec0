#!/usr/bin/env python
"""
Start a detached Xvfb virtual display.

Picks the first free display number, starts Xvfb on it in its own
session so it outlives this helper, and prints one line

    PID='<pid>'  DISPLAY=':<n>'

on stdout as soon as Xvfb is spawned, which is what the display manager
parses. If Xvfb does not survive the settle time, the error goes to
stderr and the exit status is non-zero.
"""

import logging
import os
import shutil
import subprocess
import time

import click

from jmol3dmovie.utils.logger import create_logger

logger = logging.getLogger(__name__)

X_LOCK_FILE = "/tmp/.X{number}-lock"
X_SOCKET_FILE = "/tmp/.X11-unix/X{number}"


def display_is_free(number):
    return not (
        os.path.exists(X_LOCK_FILE.format(number=number))
        or os.path.exists(X_SOCKET_FILE.format(number=number))
    )


def find_free_display(first_display=99, max_tries=100):
    """
    Find the first display number without an X lock file or socket.

    Args:
        first_display (int): Display number to start searching from.
        max_tries (int): Number of consecutive display numbers to try.

    Returns:
        int: A free display number.

    Raises:
        RuntimeError: If no free display was found.
    """
    for number in range(first_display, first_display + max_tries):
        if display_is_free(number):
            return number
    raise RuntimeError(
        f"No free X display between :{first_display} and "
        f":{first_display + max_tries - 1}."
    )


def spawn_xvfb(xvfb, display, screen):
    """
    Start Xvfb in its own session so it outlives this helper.

    Args:
        xvfb (str): Xvfb executable.
        display (str): Display identifier, e.g. ":99".
        screen (str): Screen geometry WxHxD for screen 0.

    Returns:
        subprocess.Popen: The Xvfb process.
    """
    command = [xvfb, display, "-screen", "0", screen, "-nolisten", "tcp"]
    logger.debug(f"Starting virtual display: {' '.join(command)}")
    return subprocess.Popen(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def check_running(process, display, settle_time=1.0):
    """
    Wait settle_time seconds and check that Xvfb is still running.

    Raises:
        RuntimeError: If Xvfb exited in the meantime.
    """
    time.sleep(settle_time)
    returncode = process.poll()
    if returncode is not None:
        raise RuntimeError(
            f"Xvfb exited with code {returncode} on display {display}."
        )


def format_startup_line(pid, display):
    return f"PID='{pid}'  DISPLAY='{display}'"


@click.command()
@click.option(
    "--xvfb",
    default="Xvfb",
    type=str,
    help="Xvfb executable.",
)
@click.option(
    "--screen",
    default="1280x1024x24",
    type=str,
    help="Geometry and depth of screen 0.",
)
@click.option(
    "--first-display",
    default=99,
    type=int,
    help="First display number to try.",
)
@click.option(
    "--max-tries",
    default=100,
    type=int,
    help="Number of display numbers to try.",
)
@click.option(
    "--settle-time",
    default=1.0,
    type=float,
    help="Seconds to wait for Xvfb to come up.",
)
def entry_point(xvfb, screen, first_display, max_tries, settle_time):
    """Start a detached Xvfb and print its PID and DISPLAY."""
    create_logger(debug=False, stream=False)
    xvfb_path = shutil.which(xvfb)
    if xvfb_path is None:
        raise click.ClickException(f"Xvfb executable '{xvfb}' not found.")
    try:
        number = find_free_display(
            first_display=first_display, max_tries=max_tries
        )
        display = f":{number}"
        process = spawn_xvfb(xvfb_path, display, screen=screen)
        # printed before the settle wait; callers read it from partial
        # output when they time out
        click.echo(format_startup_line(process.pid, display))
        check_running(process, display, settle_time=settle_time)
    except (RuntimeError, OSError) as e:
        raise click.ClickException(str(e))


if __name__ == "__main__":
    entry_point()
