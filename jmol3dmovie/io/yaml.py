import logging

from jmol3dmovie.utils.mixins import YAMLFileMixin

logger = logging.getLogger(__name__)


class YAMLFile(YAMLFileMixin):
    """
    A class for handling YAML files.

    Used to read the user settings file; parsing is inherited from
    YAMLFileMixin.
    """

    def __init__(self, filename):
        """
        Initialize YAMLFile with a filename.

        Args:
            filename (str): Path to the YAML file to be processed.
        """
        self.filename = filename
