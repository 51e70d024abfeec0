"""
User configuration management for jmol3dmovie.

This module provides access to the user settings file, which holds the
locations of the external programs (java and the Jmol jar, Xvfb, ffmpeg),
the ffmpeg command style and the timeouts applied to each external tool.

Configuration Structure:
    ~/.jmol3dmovie/
    └── usersettings.yaml

Example usersettings.yaml:
    JAVA: java
    JMOL_JAR: ~/prog/jmol/jmol-12.2.24/Jmol.jar
    XVFB: Xvfb
    XVFB_SCREEN: 1280x1024x24
    FFMPEG: ~/prog/ffmpeg/ffmpeg-0.6.5/ffmpeg
    FFMPEG_LEGACY: true
    TIMEOUTS:
      XVFB: 30
      JMOL: 3600
      FFMPEG: 1800

Environment variables JMOL3DMOVIE_JAVA, JMOL3DMOVIE_JMOL_JAR,
JMOL3DMOVIE_XVFB and JMOL3DMOVIE_FFMPEG take precedence over the file.
"""

import logging
import math
import os
from functools import cached_property

import yaml

from jmol3dmovie.io.yaml import YAMLFile
from jmol3dmovie.jobs.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUTS = {"XVFB": 30, "JMOL": 3600, "FFMPEG": 1800}


class Jmol3DMovieUserSettings:
    """
    User configuration settings manager for jmol3dmovie.

    Attributes:
        USER_YAML_FILE (str): Name of the main user settings YAML file.
        USER_CONFIG_DIR (str): Path to the user configuration directory.
        ENV_PREFIX (str): Prefix of environment variables overriding
            values from the YAML file.
        yaml (str): Full path to the user settings YAML file.
        config_dir (str): User configuration directory path.
        data (dict): Loaded YAML configuration data.
    """

    USER_YAML_FILE = "usersettings.yaml"
    USER_CONFIG_DIR = os.path.expanduser("~/.jmol3dmovie")
    ENV_PREFIX = "JMOL3DMOVIE_"

    def __init__(self, config_dir=None):
        """
        Load user configuration from the YAML file if it exists,
        otherwise start with an empty configuration.

        Args:
            config_dir (str, optional): Configuration directory to use
                instead of ~/.jmol3dmovie.

        Raises:
            ConfigurationError: If the file is not UTF-8 YAML or its root
                is not a mapping.
        """
        if config_dir is None:
            config_dir = self.USER_CONFIG_DIR
        self.config_dir = os.path.expanduser(config_dir)
        self.yaml = os.path.join(self.config_dir, self.USER_YAML_FILE)
        try:
            self.data = YAMLFile(filename=self.yaml).yaml_contents_dict
        except FileNotFoundError:
            self.data = {}
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Cannot read user settings file {self.yaml}: {e}"
            )
        if self.data is None:
            # empty file
            self.data = {}
        if not isinstance(self.data, dict):
            raise ConfigurationError(
                f"User settings file {self.yaml} must contain a mapping, "
                f"got {type(self.data).__name__}."
            )
        logger.debug(f"User settings from {self.yaml}: {self.data}")

    def get(self, key, default=None):
        """
        Get a setting, environment variable first, then YAML file.

        Args:
            key (str): Setting name, e.g. "JMOL_JAR".
            default: Value returned when the setting is absent.

        Returns:
            Any: The setting value.
        """
        env_value = os.environ.get(f"{self.ENV_PREFIX}{key}")
        if env_value:
            return env_value
        return self.data.get(key, default)

    @property
    def java(self):
        return self.get("JAVA", "java")

    @property
    def jmol_jar(self):
        jmol_jar = self.get("JMOL_JAR", None)
        if jmol_jar is None:
            return None
        return os.path.expanduser(jmol_jar)

    @property
    def xvfb(self):
        return self.get("XVFB", "Xvfb")

    @property
    def xvfb_helper(self):
        """
        Command used to start the virtual display.

        Returns:
            list[str] or None: Helper command as an argument list, or None
                to use the bundled start_xvfb helper.
        """
        helper = self.get("XVFB_HELPER", None)
        if helper is None:
            return None
        if isinstance(helper, str):
            return [os.path.expanduser(helper)]
        if not isinstance(helper, list) or not helper:
            raise ConfigurationError(
                f"XVFB_HELPER in {self.yaml} must be a command or a list "
                f"of arguments, got {helper!r}."
            )
        return [os.path.expanduser(str(helper[0]))] + [
            str(h) for h in helper[1:]
        ]

    @property
    def xvfb_screen(self):
        return self.get("XVFB_SCREEN", "1280x1024x24")

    @property
    def ffmpeg(self):
        return self.get("FFMPEG", "ffmpeg")

    @property
    def ffmpeg_legacy(self):
        """
        Whether to use the ffmpeg 0.6 command line (-b, -intra).

        Newer ffmpeg releases need -b:v and -g 1 instead.
        """
        value = self.get("FFMPEG_LEGACY", True)
        if isinstance(value, str):
            return value.strip().lower() not in ("0", "false", "no", "off")
        return bool(value)

    @cached_property
    def timeouts(self):
        """
        Timeouts in seconds for each external tool.

        Returns:
            dict: Keys "XVFB", "JMOL" and "FFMPEG".

        Raises:
            ConfigurationError: If TIMEOUTS is not a mapping or a timeout
                is not a positive number.
        """
        timeouts = dict(DEFAULT_TIMEOUTS)
        user_timeouts = self.data.get("TIMEOUTS")
        if user_timeouts is None:
            user_timeouts = {}
        if not isinstance(user_timeouts, dict):
            raise ConfigurationError(
                f"TIMEOUTS in {self.yaml} must map XVFB, JMOL or FFMPEG to "
                f"seconds, got {user_timeouts!r}."
            )
        for key, value in user_timeouts.items():
            key = str(key).upper()
            if key not in timeouts:
                logger.warning(f"Ignoring unknown timeout setting {key}.")
                continue
            try:
                seconds = float(value)
            except (TypeError, ValueError):
                seconds = None
            # bool is an int; NaN fails both comparisons
            if (
                isinstance(value, bool)
                or seconds is None
                or not 0 < seconds < math.inf
            ):
                raise ConfigurationError(
                    f"Timeout {key} in {self.yaml} must be a positive number "
                    f"of seconds, got {value!r}."
                )
            timeouts[key] = seconds
        return timeouts
