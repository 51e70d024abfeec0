"""
Virtual display management for headless Jmol runs.

Jmol needs an X display even in batch mode. XvfbDisplayManager starts an
Xvfb server through a startup helper, hands out a DisplayHandle for it and
shuts it down again. The display is given to the renderer through the
environment of its process; os.environ is never pointed at it.
"""

import logging
import os
import re
import signal
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from jmol3dmovie.jobs.exceptions import StartupError
from jmol3dmovie.settings.executable import XvfbExecutable
from jmol3dmovie.utils.repattern import xvfb_startup_pattern

logger = logging.getLogger(__name__)


@dataclass
class DisplayHandle:
    """
    A running virtual display server.

    Attributes:
        process_id (int): Process id of the display server.
        display_id (str): X display identifier, e.g. ":99".
        previous_display_id (str | None): DISPLAY of this process when the
            display was acquired, None if it was unset.
        released (bool): Whether the display was already released.
    """

    process_id: int
    display_id: str
    previous_display_id: Optional[str] = None
    released: bool = False

    def environ(self, env=None):
        """Copy of env (default os.environ) with DISPLAY set to this display."""
        if env is None:
            env = os.environ
        env = dict(env)
        env["DISPLAY"] = self.display_id
        return env


def parse_startup_output(output):
    """
    Extract process id and display from the startup helper output.

    Args:
        output (str): stdout of the startup helper.

    Returns:
        tuple[int, str]: (process id, display identifier).

    Raises:
        StartupError: If the output has no PID/DISPLAY line.
    """
    match = re.search(xvfb_startup_pattern, output or "")
    if match is None:
        raise StartupError(
            "could NOT START virtual X server 'Xvfb' or DETERMINE "
            f"display_number, helper output was: {output!r}"
        )
    return int(match.group(1)), match.group(2)


class XvfbDisplayManager:
    """
    Starts and stops Xvfb virtual displays.

    Args:
        executable (XvfbExecutable): Xvfb program and startup helper.
        timeout (float): Seconds to wait for the startup helper.
    """

    def __init__(self, executable=None, timeout=30):
        if executable is None:
            executable = XvfbExecutable.from_user_settings()
        self.executable = executable
        self.timeout = timeout

    def __repr__(self):
        return f"{self.__class__.__qualname__}<{self.executable}>"

    def acquire(self):
        """
        Start a virtual display.

        Returns:
            DisplayHandle: The started display.

        Raises:
            StartupError: If the helper cannot be run, fails, times out or
                does not report a PID and DISPLAY.
        """
        command = self.executable.get_helper_command()
        logger.info(f"Starting virtual display: {' '.join(command)}")
        try:
            process = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            message = (
                f"Virtual display helper did not finish within "
                f"{self.timeout} s: {command}."
            )
            pid = self._release_reported(e.stdout)
            if pid is None:
                message += (
                    " An Xvfb server it started may still be running and "
                    "has to be stopped by hand."
                )
            else:
                message += f" Stopped the Xvfb server it started (pid={pid})."
            raise StartupError(message)
        except OSError as e:
            raise StartupError(f"Could not run virtual display helper: {e}")

        logger.debug(f"Virtual display helper output: {process.stdout!r}")
        if process.returncode != 0:
            raise StartupError(
                f"Virtual display helper exited with code "
                f"{process.returncode}: {process.stderr.strip()}"
            )
        pid, display = parse_startup_output(process.stdout)
        handle = DisplayHandle(
            process_id=pid,
            display_id=display,
            previous_display_id=os.environ.get("DISPLAY"),
        )
        logger.info(
            f"Started virtual display {handle.display_id} "
            f"(pid={handle.process_id})."
        )
        return handle

    def _release_reported(self, output):
        """
        Stop the server named in the output of a helper that timed out.

        Returns:
            int or None: Process id of the stopped server, None if the
                output has no PID/DISPLAY line.
        """
        # partial output of a timed out run is bytes even in text mode
        if isinstance(output, bytes):
            output = output.decode(errors="replace")
        try:
            pid, display = parse_startup_output(output)
        except StartupError:
            return None
        self.release(
            DisplayHandle(
                process_id=pid,
                display_id=display,
                previous_display_id=os.environ.get("DISPLAY"),
            )
        )
        return pid

    def release(self, handle):
        """
        Stop a virtual display and restore DISPLAY.

        Failing to stop the server is logged, never raised.

        Args:
            handle (DisplayHandle): Display returned by acquire().
        """
        if handle.released:
            logger.warning(
                f"Virtual display {handle.display_id} was already released."
            )
            return
        handle.released = True

        current_display = os.environ.get("DISPLAY")
        if current_display != handle.previous_display_id:
            logger.info(
                f"Restoring DISPLAY={handle.previous_display_id} "
                f"(was {current_display})."
            )
            if handle.previous_display_id is None:
                os.environ.pop("DISPLAY", None)
            else:
                os.environ["DISPLAY"] = handle.previous_display_id

        try:
            os.kill(handle.process_id, signal.SIGTERM)
        except ProcessLookupError:
            logger.warning(
                f"Virtual display {handle.display_id} "
                f"(pid={handle.process_id}) was no longer running."
            )
        except OSError as e:
            logger.warning(
                f"Could not terminate virtual display {handle.display_id} "
                f"(pid={handle.process_id}): {e}"
            )
        else:
            logger.info(
                f"Terminated virtual display {handle.display_id} "
                f"(pid={handle.process_id})."
            )

    @contextmanager
    def display(self):
        """Acquire a display for the duration of a with block."""
        handle = self.acquire()
        try:
            yield handle
        finally:
            self.release(handle)
