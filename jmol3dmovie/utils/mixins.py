"""
Mixin classes for file handling and class registration.

Key mixin classes:
- FileMixin: Basic file reading
- YAMLFileMixin: YAML file handling
- RegistryMixin: Automatic subclass registration
"""

import inspect
import os
from functools import cached_property

import yaml


class FileMixin:
    """Mixin class for files that can be opened and read."""

    @property
    def filepath(self):
        return os.path.abspath(self.filename)

    @cached_property
    def content_lines_string(self):
        """
        Read and cache file contents as a single string.

        Returns:
            str: Complete file contents as a single string.
        """
        with open(self.filepath, "r", encoding="utf-8") as f:
            return f.read()


class YAMLFileMixin(FileMixin):
    """Mixin class for YAML file parsing."""

    @cached_property
    def yaml_contents_dict(self):
        """
        Parse YAML file contents into a Python object.

        Uses `yaml.safe_load` to read the YAML root (typically a mapping).
        Empty files give None.

        Returns:
            Any: Parsed YAML root object.
        """
        return yaml.safe_load(self.content_lines_string)


class RegistryMeta(type):
    """
    Metaclass that seeds a shared subclass registry on the root class.

    Initializes a `_REGISTRY` list on the first (root) class in a hierarchy.
    Actual registration of subclasses happens in
    `RegistryMixin.__init_subclass__`.
    """

    def __init__(cls, name, bases, dct):
        super().__init__(name, bases, dct)
        # Only initialize _REGISTRY in the root parent class
        if not hasattr(cls, "_REGISTRY"):
            cls._REGISTRY = []


class RegistryMixin(metaclass=RegistryMeta):
    """
    Mixin to automatically register subclasses in a shared registry.

    Used by jobs and runners so that the right runner can be looked up
    from a job type.
    """

    # Flag to control whether this class should be registered in the registry
    REGISTERABLE = True

    @classmethod
    def subclasses(cls, allow_abstract=False):
        """
        Get all registered subclasses of this class.

        Args:
            allow_abstract (bool): Whether to include abstract classes.
                Defaults to False.

        Returns:
            list: List of subclass types.
        """
        return cls._subclasses(cls, cls._REGISTRY, allow_abstract)

    @staticmethod
    def _subclasses(parent_cls, registry, allow_abstract):
        return [
            c
            for c in registry
            if issubclass(c, parent_cls)
            and c != parent_cls
            and (not inspect.isabstract(c) or allow_abstract)
        ]

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.REGISTERABLE:
            # Append the subclass to the root _REGISTRY
            cls._REGISTRY.append(cls)
