import logging
import os
import shutil
import sys
from typing import Optional

from jmol3dmovie.jobs.exceptions import ExecutableNotFoundError
from jmol3dmovie.settings.user import Jmol3DMovieUserSettings

logger = logging.getLogger(__name__)


class Executable:
    """Abstract base class for obtaining a program executable.

    The program location is taken from the user settings (or the matching
    JMOL3DMOVIE_* environment variable). A bare program name is looked up
    on PATH.
    """

    PROGRAM: Optional[str] = None

    def __init__(self, executable=None):
        self.executable = executable

    @classmethod
    def from_user_settings(cls, user_settings=None):
        if user_settings is None:
            user_settings = Jmol3DMovieUserSettings()
        return cls(executable=user_settings.get(cls.PROGRAM))

    def get_executable(self):
        """
        Resolve the executable to an absolute path.

        Returns:
            str: Path to the executable.

        Raises:
            ExecutableNotFoundError: If the program cannot be found.
        """
        if self.executable is None:
            raise ExecutableNotFoundError(
                f"No location configured for {self.PROGRAM}."
            )
        executable = os.path.expanduser(str(self.executable))
        if os.path.dirname(executable):
            if not os.path.isfile(executable):
                raise ExecutableNotFoundError(
                    f"{self.PROGRAM} executable {executable} does not exist."
                )
            return os.path.abspath(executable)
        executable_path = shutil.which(executable)
        if executable_path is None:
            raise ExecutableNotFoundError(
                f"{self.PROGRAM} executable '{executable}' not found in PATH. "
                f"Please install it or set {self.PROGRAM} in the user settings."
            )
        return executable_path

    def __repr__(self):
        return f"{self.__class__.__qualname__}<{self.executable}>"


class JavaExecutable(Executable):
    PROGRAM = "JAVA"

    def __init__(self, executable="java"):
        super().__init__(executable=executable)


class JmolExecutable(Executable):
    """Jmol is run from its jar file through java."""

    PROGRAM = "JMOL_JAR"

    def __init__(self, executable=None, java=None):
        super().__init__(executable=executable)
        if java is None:
            java = JavaExecutable()
        self.java = java

    @classmethod
    def from_user_settings(cls, user_settings=None):
        if user_settings is None:
            user_settings = Jmol3DMovieUserSettings()
        return cls(
            executable=user_settings.jmol_jar,
            java=JavaExecutable(executable=user_settings.java),
        )

    def get_executable(self):
        if self.executable is None:
            raise ExecutableNotFoundError(
                "Location of Jmol.jar is not configured. Set JMOL_JAR in "
                f"{Jmol3DMovieUserSettings.USER_CONFIG_DIR}/"
                f"{Jmol3DMovieUserSettings.USER_YAML_FILE} or the "
                "JMOL3DMOVIE_JMOL_JAR environment variable."
            )
        jmol_jar = os.path.expanduser(str(self.executable))
        if not os.path.isfile(jmol_jar):
            raise ExecutableNotFoundError(
                f"Jmol jar file {jmol_jar} does not exist."
            )
        return os.path.abspath(jmol_jar)

    def get_command(self):
        """Leading arguments that start Jmol: [java, -jar, Jmol.jar]."""
        return [self.java.get_executable(), "-jar", self.get_executable()]


class XvfbExecutable(Executable):
    """Virtual display server and the helper that starts it.

    The helper prints a single line of the form
    PID='<pid>'  DISPLAY='<display>' once the server is up.
    """

    PROGRAM = "XVFB"

    def __init__(self, executable="Xvfb", helper=None, screen="1280x1024x24"):
        super().__init__(executable=executable)
        self.helper = helper
        self.screen = screen

    @classmethod
    def from_user_settings(cls, user_settings=None):
        if user_settings is None:
            user_settings = Jmol3DMovieUserSettings()
        return cls(
            executable=user_settings.xvfb,
            helper=user_settings.xvfb_helper,
            screen=user_settings.xvfb_screen,
        )

    def get_helper_command(self):
        """
        Command that starts the virtual display.

        Returns:
            list[str]: The configured helper, or the bundled
                jmol3dmovie.scripts.start_xvfb module run with the
                current interpreter.
        """
        if self.helper is not None:
            return list(self.helper)
        return [
            sys.executable,
            "-m",
            "jmol3dmovie.scripts.start_xvfb",
            "--xvfb",
            str(self.executable),
            "--screen",
            str(self.screen),
        ]


class FFmpegExecutable(Executable):
    PROGRAM = "FFMPEG"

    def __init__(self, executable="ffmpeg", legacy=True):
        super().__init__(executable=executable)
        self.legacy = legacy

    @classmethod
    def from_user_settings(cls, user_settings=None):
        if user_settings is None:
            user_settings = Jmol3DMovieUserSettings()
        return cls(
            executable=user_settings.ffmpeg,
            legacy=user_settings.ffmpeg_legacy,
        )
