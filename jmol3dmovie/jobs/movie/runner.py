"""
Jmol movie job runners.

JmolMovieJobRunner renders the rotation frames with Jmol on a virtual
display and encodes them into a movie with ffmpeg. The virtual display is
held only while Jmol runs and is released on every path out of the render
step. FakeJmolMovieJobRunner goes through the same steps without running
any external program, for testing workflows.
"""

import logging
import os
import subprocess
from contextlib import nullcontext

from jmol3dmovie.jobs.exceptions import (
    EmptyOutputError,
    EncodeError,
    RenderError,
)
from jmol3dmovie.jobs.movie.display import DisplayHandle, XvfbDisplayManager
from jmol3dmovie.jobs.movie.stills import (
    FRAME_GLOB,
    FRAME_PATTERN,
    frame_filename,
    generate_stills_script,
    list_frames,
    merge_scripts,
)
from jmol3dmovie.jobs.runner import JobRunner
from jmol3dmovie.settings.executable import (
    FFmpegExecutable,
    JmolExecutable,
    XvfbExecutable,
)
from jmol3dmovie.utils.utils import remove_file, remove_files

logger = logging.getLogger(__name__)


class JmolMovieJobRunner(JobRunner):
    """
    Job runner creating rotating movies with Jmol and ffmpeg.

    Attributes:
        JOBTYPES (list): Supported job type identifiers.
        PROGRAM (str): Program identifier ('jmol').
        FAKE (bool): Whether this runner operates in fake/test mode.
        debug (bool): Keep still images and generated scripts.
        running_directory (str): Folder the programs run in.
    """

    JOBTYPES = ["jmol_movie"]
    PROGRAM = "jmol"
    FAKE = False

    def __init__(
        self,
        fake=False,
        debug=False,
        user_settings=None,
        display_manager=None,
        jmol=None,
        ffmpeg=None,
        **kwargs,
    ):
        """
        Initialize the Jmol movie job runner.

        Args:
            fake: Whether this is a fake runner for testing (default: False).
            debug: Keep intermediate files (default: False).
            user_settings: Program locations and timeouts (default: loaded
                from the user settings file).
            display_manager: Virtual display manager (default: Xvfb from
                the user settings).
            jmol: JmolExecutable (default: from the user settings).
            ffmpeg: FFmpegExecutable (default: from the user settings).
            **kwargs: Additional arguments passed to parent JobRunner.
        """
        super().__init__(
            fake=fake, debug=debug, user_settings=user_settings, **kwargs
        )
        self._display_manager = display_manager
        self._jmol = jmol
        self._ffmpeg = ffmpeg
        self.running_directory = None
        self.ffmpeg_path = None
        logger.debug(f"Jobrunner debug: {self.debug}")
        logger.debug(f"Jobrunner timeouts: {self.timeouts}")

    @property
    def executable(self):
        """
        Jmol executable, run through java.

        Returns:
            JmolExecutable: Jmol jar and java locations.
        """
        if self._jmol is None:
            self._jmol = JmolExecutable.from_user_settings(self.user_settings)
        return self._jmol

    @property
    def ffmpeg(self):
        if self._ffmpeg is None:
            self._ffmpeg = FFmpegExecutable.from_user_settings(
                self.user_settings
            )
        return self._ffmpeg

    @property
    def display_manager(self):
        if self._display_manager is None:
            self._display_manager = XvfbDisplayManager(
                executable=XvfbExecutable.from_user_settings(
                    self.user_settings
                ),
                timeout=self.timeouts["XVFB"],
            )
        return self._display_manager

    def _prerun(self, job):
        """
        Prepare the job folder before rendering.

        Checks that ffmpeg is available so a missing encoder is reported
        before any rendering, and removes still images left over from an
        earlier run so that the frames found afterwards are this run's.
        """
        self.running_directory = job.folder
        logger.debug(f"Running directory: {self.running_directory}")
        self.ffmpeg_path = self.ffmpeg.get_executable()
        logger.debug(f"Encoder: {self.ffmpeg_path}")
        removed = remove_files(FRAME_GLOB, folder=job.folder)
        if removed:
            logger.info(
                f"Removed {len(removed)} existing still image(s) "
                f"{FRAME_GLOB} from {job.folder}."
            )

    def _write_input(self, job):
        """
        Write the Jmol script that produces the still images.

        With a state script, the state script and the stills script of
        the job's quality profile are merged into one file. The state
        script is copied byte for byte, so any encoding Jmol accepts is
        kept. With a structure file, the stills script alone is written.

        Raises:
            RenderError: If the state script cannot be read or the Jmol
                script cannot be written.
        """
        stills_script = generate_stills_script(job.quality_profile).encode()
        script_path = os.path.join(job.folder, job.jmol_script)
        try:
            if job.is_state_script:
                with open(job.input_path, "rb") as f:
                    script = merge_scripts(f.read(), stills_script)
                logger.info(
                    f"Merging state script {job.input_filename} "
                    f"with {job.quality_profile.stills_script_name} "
                    f"into {job.jmol_script}"
                )
            else:
                script = stills_script
                logger.info(
                    f"Writing {job.quality_profile.stills_script_name} "
                    f"to {job.jmol_script}"
                )
            with open(script_path, "wb") as f:
                f.write(script)
        except OSError as e:
            raise RenderError(
                f"Could not create Jmol script {script_path}: {e}"
            )

    def _get_command(self, job):
        """
        Build the Jmol command.

        Returns:
            list[str]: java -jar Jmol.jar -x -s <merged script>, or
                java -jar Jmol.jar -x <structure file> -s <stills script>.
        """
        command = self.executable.get_command() + ["-x"]
        if job.is_state_script:
            command += ["-s", job.jmol_script]
        else:
            command += [job.input_filename, "-s", job.jmol_script]
        return command

    def _job_resources(self, job):
        return self.display_manager.display()

    def _update_os_environ(self, job, resources=None):
        """Environment for Jmol, pointing DISPLAY at the virtual display."""
        env = super()._update_os_environ(job, resources)
        if resources is not None:
            env = resources.environ(env)
        return env

    def _create_process(self, job, command, env):
        """
        Run Jmol and wait for it to finish.

        Output and errors of Jmol go to the job's Jmol log file.

        Returns:
            subprocess.CompletedProcess: The finished Jmol process.

        Raises:
            RenderError: If Jmol cannot be started or exceeds its timeout.
        """
        timeout = self.timeouts["JMOL"]
        logger.info(
            f"Command executed: {' '.join(command)}\n"
            f"Writing output to: {job.jmol_logfile}"
        )
        try:
            with open(job.jmol_logfile, "w") as log:
                process = subprocess.run(
                    command,
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    env=env,
                    cwd=self.running_directory,
                    timeout=timeout,
                )
        except subprocess.TimeoutExpired:
            raise RenderError(
                f"Jmol did not finish within {timeout} s and was killed."
            )
        except OSError as e:
            # log file or program
            raise RenderError(f"Could not run Jmol: {e}")
        return process

    def _run(self, process, **kwargs):
        if process.returncode != 0:
            logger.warning(
                f"Jmol process exited with code {process.returncode}"
            )
        frames = list_frames(self.running_directory)
        logger.info(
            f"Jmol created {len(frames)} still image(s) "
            f"in {self.running_directory}."
        )
        return process.returncode

    def _postrun(self, job, **kwargs):
        self._create_movie(job)

    def _get_encode_command(self, job):
        """
        Build the ffmpeg command for the job's quality profile.

        Returns:
            list[str]: ffmpeg arguments; the old -b/-intra form unless the
                user settings ask for the current ffmpeg options.
        """
        profile = job.quality_profile
        if self.ffmpeg.legacy:
            return [
                self.ffmpeg_path,
                "-r",
                str(profile.frame_rate),
                "-b",
                str(profile.bitrate),
                "-intra",
                "-i",
                FRAME_PATTERN,
                job.movie_filename,
            ]
        return [
            self.ffmpeg_path,
            "-y",
            "-r",
            str(profile.frame_rate),
            "-i",
            FRAME_PATTERN,
            "-b:v",
            str(profile.bitrate),
            "-g",
            "1",
            job.movie_filename,
        ]

    def _create_movie(self, job):
        """
        Encode the still images into the movie file.

        An existing movie of the same name is removed first, so the file
        found afterwards was written by this run.

        Raises:
            EncodeError: If ffmpeg cannot be run, exceeds its timeout or
                leaves no movie file.
            EmptyOutputError: If the movie file is empty.
        """
        remove_file(job.movie_file)
        command = self._get_encode_command(job)
        timeout = self.timeouts["FFMPEG"]
        logger.info(
            f"Executing FFmpeg command: {' '.join(command)}\n"
            f"Writing output to: {job.ffmpeg_logfile}"
        )
        try:
            with open(job.ffmpeg_logfile, "w") as log:
                process = subprocess.run(
                    command,
                    stdin=subprocess.DEVNULL,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    cwd=self.running_directory,
                    timeout=timeout,
                )
        except subprocess.TimeoutExpired:
            raise EncodeError(
                f"FFmpeg did not finish within {timeout} s and was killed."
            )
        except OSError as e:
            raise EncodeError(f"Could not run FFmpeg: {e}")
        if process.returncode != 0:
            logger.warning(
                f"FFmpeg process exited with code {process.returncode}"
            )
        self._check_movie(job)

    def _check_movie(self, job):
        if not os.path.isfile(job.movie_file):
            raise EncodeError(
                f"After running ffmpeg, can't find movie file {job.movie_file}"
            )
        if os.path.getsize(job.movie_file) == 0:
            raise EmptyOutputError(
                f"After running ffmpeg, movie file {job.movie_file} "
                f"has zero size"
            )
        logger.info(
            f"Movie {job.movie_file} created, "
            f"{os.path.getsize(job.movie_file)} bytes."
        )

    def _postrun_cleanup(self, job):
        """Remove still images and generated scripts unless debugging."""
        if self.debug:
            logger.info(
                f"Debug mode: keeping still images and {job.jmol_script} "
                f"in {job.folder}."
            )
            return
        removed = remove_files(FRAME_GLOB, folder=job.folder)
        logger.debug(f"Cleaned up {len(removed)} still image(s).")
        remove_file(os.path.join(job.folder, job.jmol_script))


class FakeJmolMovieJobRunner(JmolMovieJobRunner):
    """
    Fake Jmol movie job runner for testing and simulation purposes.

    Goes through the same steps as JmolMovieJobRunner, but writes
    placeholder still images and a placeholder movie instead of running
    Xvfb, Jmol and ffmpeg.
    """

    FAKE = True

    def __init__(self, fake=True, **kwargs):
        super().__init__(fake=fake, **kwargs)

    def _prerun(self, job):
        self.running_directory = job.folder
        self.ffmpeg_path = "ffmpeg"
        remove_files(FRAME_GLOB, folder=job.folder)

    def _get_command(self, job):
        command = ["java", "-jar", "Jmol.jar", "-x"]
        if job.is_state_script:
            command += ["-s", job.jmol_script]
        else:
            command += [job.input_filename, "-s", job.jmol_script]
        return command

    def _job_resources(self, job):
        return nullcontext(
            DisplayHandle(
                process_id=0,
                display_id=":fake",
                previous_display_id=os.environ.get("DISPLAY"),
            )
        )

    def _create_process(self, job, command, env):
        logger.info(f"Faking command: {' '.join(command)}")
        for index in range(1, job.quality_profile.frames + 1):
            with open(
                os.path.join(self.running_directory, frame_filename(index)),
                "wb",
            ) as f:
                f.write(b"GIF89a")
        return subprocess.CompletedProcess(args=command, returncode=0)

    def _create_movie(self, job):
        remove_file(job.movie_file)
        logger.info(
            f"Faking command: {' '.join(self._get_encode_command(job))}"
        )
        with open(job.movie_file, "wb") as movie:
            for frame in list_frames(self.running_directory):
                with open(frame, "rb") as f:
                    movie.write(f.read())
        self._check_movie(job)
