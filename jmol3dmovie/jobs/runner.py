import logging
import os
from abc import abstractmethod
from contextlib import nullcontext

from jmol3dmovie.settings.user import Jmol3DMovieUserSettings
from jmol3dmovie.utils.mixins import RegistryMixin

logger = logging.getLogger(__name__)


class JobRunner(RegistryMixin):
    """Abstract base class for job runners that run a job locally.

    Args:
        fake (bool): Whether to use fake job runner.
        debug (bool): Keep intermediate files for inspection.
        user_settings (Jmol3DMovieUserSettings): Program locations and
            timeouts. Loaded from the user settings file if not given.
        **kwargs: Additional keyword arguments.
    """

    JOBTYPES: list = NotImplemented
    PROGRAM: str = NotImplemented
    FAKE: bool = False

    def __init__(
        self,
        fake=False,
        debug=False,
        user_settings=None,
        **kwargs,
    ):
        if user_settings is None:
            user_settings = Jmol3DMovieUserSettings()
        self.fake = fake
        self.debug = debug
        self.user_settings = user_settings
        self.kwargs = kwargs

    def __repr__(self):
        return f"{self.__class__.__qualname__}<fake={self.fake}, debug={self.debug}>"

    @property
    def timeouts(self):
        return self.user_settings.timeouts

    @property
    @abstractmethod
    def executable(self):
        """Subclasses to implement."""
        pass

    def _prerun(self, job):
        # Subclasses can implement
        pass

    def _write_input(self, job):
        # Subclasses can implement
        pass

    def _job_resources(self, job):
        """Context manager holding resources the process needs while it runs.

        Subclasses can return e.g. a virtual display. The value it yields
        is passed to _update_os_environ.
        """
        return nullcontext()

    def _run(self, process, **kwargs):
        return process.returncode

    def _postrun(self, job, **kwargs):
        # Subclasses can implement
        pass

    def _postrun_cleanup(self, job):
        # Subclasses can implement
        pass

    @abstractmethod
    def _get_command(self, job):
        raise NotImplementedError

    @abstractmethod
    def _create_process(self, job, command, env):
        raise NotImplementedError

    def _update_os_environ(self, job, resources=None):
        return os.environ.copy()

    def run(self, job, **kwargs):
        """Main method to run a job. The run consists of
        several steps: prerun, write input, get command, acquire job
        resources, create process, run process, release resources,
        postrun, and postrun cleanup.
        The resources are released and the cleanup is done whether or
        not a step before them raised.
        Args:
            job: Job instance to run.
            **kwargs: Additional keyword arguments for the run method.
        """
        logger.debug(f"Running job {job} with runner {self}")
        try:
            logger.debug(f"Prerunning job: {job}")
            self._prerun(job)
            logger.debug(f"Writing input for job: {job}")
            self._write_input(job)
            logger.debug(f"Obtaining command for job: {job}")
            command = self._get_command(job)
            logger.debug(f"Command obtained for job {job}: {command}")
            with self._job_resources(job) as resources:
                logger.debug(f"Obtaining environment for job: {job}")
                env = self._update_os_environ(job, resources)
                logger.debug(f"Creating process for job: {job}")
                process = self._create_process(job, command=command, env=env)
                logger.debug(f"Process created for job {job}: {process}")
                self._run(process, **kwargs)
            logger.debug(f"Postrunning job: {job}")
            self._postrun(job)
        finally:
            logger.debug(f"Postrun cleanup for job: {job}")
            self._postrun_cleanup(job)

    @classmethod
    def from_job(cls, job, fake=False, **kwargs):
        runners = cls.subclasses()
        logger.debug(f"Available runners: {runners}")
        jobtype = job.TYPE

        for runner in runners:
            runner_jobtypes = runner.JOBTYPES

            if runner_jobtypes is NotImplemented:
                runner_jobtypes = []

            if jobtype in runner_jobtypes and runner.FAKE == fake:
                logger.info(f"Using job runner: {runner} for job: {job}")
                return runner(fake=fake, **kwargs)

        raise ValueError(
            f"Could not find any runners for job: {job}. \n"
            f"Runners in registry: {runners}. \n "
            f"Fake: {fake}"
        )
