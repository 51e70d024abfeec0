import logging
import os
from abc import abstractmethod
from typing import Optional

from jmol3dmovie.jobs.runner import JobRunner
from jmol3dmovie.utils.mixins import RegistryMixin

logger = logging.getLogger(__name__)


class Job(RegistryMixin):
    """Class that encapsulates and runs a task.
    Args:
        label (str): A label for the job, used to name its files.
        jobrunner (JobRunner): The JobRunner instance to execute the job.
            May be None and assigned later, before the job is run.
        folder (str): Folder the job runs in. Defaults to the current
            working directory.
        skip_completed (bool): If True, completed jobs will not be rerun.
            Defaults to False.
        **kwargs: Additional keyword arguments.
    """

    TYPE: Optional[str] = None
    PROGRAM: Optional[str] = None

    def __init__(
        self,
        label,
        jobrunner=None,
        folder=None,
        skip_completed=False,
        **kwargs,
    ):
        if jobrunner is not None and not isinstance(jobrunner, JobRunner):
            raise ValueError(
                f"jobrunner must be an instance of JobRunner. Instead was: {jobrunner}!"
            )
        if folder is None:
            folder = self._determine_folder()
        self._folder = os.path.abspath(folder)
        self.label = label
        self.jobrunner = jobrunner
        self.skip_completed = skip_completed
        self.kwargs = kwargs

    @property
    def folder(self):
        return self._folder

    @folder.setter
    def folder(self, folder):
        self._folder = os.path.abspath(folder)

    def _determine_folder(self):
        """
        Determine the folder based on the current working directory
        where the job is submitted.
        """
        return os.path.abspath(os.getcwd())

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}<folder={self.folder}, "
            f"label={self.label}, jobrunner={self.jobrunner}>"
        )

    def run(self, **kwargs):
        if self.jobrunner is None:
            raise ValueError(f"No jobrunner assigned to {self}.")
        if self.is_complete() and self.skip_completed:
            logger.info(f"{self} is already complete, not running.")
            return self._completed_result()
        return self._run(**kwargs)

    @abstractmethod
    def _run(self, **kwargs):
        """
        Run the job using the assigned jobrunner.
        Subclasses can override this method for custom behavior.
        """
        logger.info(f"Running job {self} with jobrunner {self.jobrunner}")
        return self.jobrunner.run(self, **kwargs)

    def _completed_result(self):
        return None

    @abstractmethod
    def _job_is_complete(self):
        raise NotImplementedError

    def is_complete(self):
        return self._job_is_complete()
