"""
General utility functions for jmol3dmovie.

Small helpers for filename manipulation and for removing files that
match a glob pattern inside a folder.
"""

import glob
import logging
import os
import re
from contextlib import suppress

from jmol3dmovie.utils.repattern import filename_extension_pattern

logger = logging.getLogger(__name__)


def strip_extension(filename):
    """
    Remove one trailing filename extension.

    Only an extension of 1 to 7 word characters is recognized, so
    "demo.spt" gives "demo" and "1abc.model.pdb" gives "1abc.model".
    A name that would become empty (".pdb") keeps its text without
    the leading dot.

    Args:
        filename (str): Bare filename, without directory.

    Returns:
        str: Filename without its trailing extension.
    """
    name = re.sub(filename_extension_pattern, "", filename)
    if not name:
        name = filename.lstrip(".")
    return name


def split_path(path):
    """
    Split a path into its directory and bare filename.

    An empty directory part is returned as the current directory ".".

    Args:
        path (str): File path as given by the user.

    Returns:
        tuple[str, str]: (directory, filename).
    """
    directory, filename = os.path.split(path)
    if not directory:
        directory = "."
    return directory, filename


def remove_files(pattern, folder="."):
    """
    Remove every file in folder matching a glob pattern.

    Files vanishing between listing and removal are ignored.

    Args:
        pattern (str): Glob pattern, e.g. "movie????.gif".
        folder (str): Folder in which the pattern is evaluated.

    Returns:
        list[str]: Paths of the files that were removed.
    """
    removed = []
    for filepath in sorted(glob.glob(os.path.join(folder, pattern))):
        if not os.path.isfile(filepath):
            continue
        with suppress(FileNotFoundError):
            os.remove(filepath)
            removed.append(filepath)
    if removed:
        logger.debug(
            f"Removed {len(removed)} file(s) matching {pattern} in {folder}."
        )
    return removed


def remove_file(filepath):
    """Remove a single file if it exists. Returns True if it was removed.

    Anything other than a regular file at filepath is left alone.
    """
    if not os.path.isfile(filepath):
        return False
    try:
        os.remove(filepath)
    except FileNotFoundError:
        return False
    logger.info(f"Removed existing file {filepath}.")
    return True
