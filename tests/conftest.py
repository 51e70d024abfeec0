import logging
import os
import subprocess

import pytest

from jmol3dmovie.jobs.movie.display import DisplayHandle, XvfbDisplayManager
from jmol3dmovie.jobs.movie.runner import (
    FakeJmolMovieJobRunner,
    JmolMovieJobRunner,
)
from jmol3dmovie.settings.executable import (
    FFmpegExecutable,
    JavaExecutable,
    JmolExecutable,
    XvfbExecutable,
)
from jmol3dmovie.settings.user import Jmol3DMovieUserSettings

DEMO_STATE_SCRIPT = """\
# Jmol state script
load "demo.pdb"
rotate x 10
zoom 120"""

DEMO_PDB = """\
HETATM    1  O   HOH A   1       0.000   0.000   0.000  1.00  0.00           O
HETATM    2  H1  HOH A   1       0.957   0.000   0.000  1.00  0.00           H
HETATM    3  H2  HOH A   1      -0.240   0.927   0.000  1.00  0.00           H
END
"""


@pytest.fixture(autouse=True)
def restore_root_logger():
    """create_logger() replaces the root handlers; put them back."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    filters = root.filters[:]
    level = root.level
    yield
    root.handlers = handlers
    root.filters = filters
    root.setLevel(level)


@pytest.fixture(autouse=True)
def isolated_user_settings(tmp_path_factory, monkeypatch):
    """Never read ~/.jmol3dmovie or JMOL3DMOVIE_* from the test machine."""
    config_dir = tmp_path_factory.mktemp("config")
    monkeypatch.setattr(
        Jmol3DMovieUserSettings, "USER_CONFIG_DIR", str(config_dir)
    )
    for key in list(os.environ):
        if key.startswith(Jmol3DMovieUserSettings.ENV_PREFIX):
            monkeypatch.delenv(key)
    return config_dir


@pytest.fixture()
def write_user_settings(isolated_user_settings):
    def _write(text):
        path = isolated_user_settings / Jmol3DMovieUserSettings.USER_YAML_FILE
        path.write_text(text)
        return str(path)

    return _write


@pytest.fixture()
def user_settings(isolated_user_settings):
    return Jmol3DMovieUserSettings(config_dir=str(isolated_user_settings))


############ Input files ##################
@pytest.fixture()
def movie_folder(tmp_path):
    folder = tmp_path / "movies"
    folder.mkdir()
    return folder


@pytest.fixture()
def state_script_file(movie_folder):
    path = movie_folder / "demo.spt"
    path.write_text(DEMO_STATE_SCRIPT)
    return str(path)


@pytest.fixture()
def structure_file(movie_folder):
    path = movie_folder / "demo.pdb"
    path.write_text(DEMO_PDB)
    return str(path)


############ Programs ##################
@pytest.fixture()
def program_folder(tmp_path):
    folder = tmp_path / "programs"
    folder.mkdir()
    for name in ("java", "Jmol.jar", "ffmpeg"):
        (folder / name).write_text("")
    return folder


@pytest.fixture()
def jmol_executable(program_folder):
    return JmolExecutable(
        executable=str(program_folder / "Jmol.jar"),
        java=JavaExecutable(executable=str(program_folder / "java")),
    )


@pytest.fixture()
def ffmpeg_executable(program_folder):
    return FFmpegExecutable(executable=str(program_folder / "ffmpeg"))


@pytest.fixture()
def display_manager(mocker):
    """Display manager whose acquire/release do not start anything."""
    manager = XvfbDisplayManager(
        executable=XvfbExecutable(helper=["start_xvfb"]), timeout=5
    )
    mocker.patch.object(
        manager,
        "acquire",
        return_value=DisplayHandle(process_id=4242, display_id=":42"),
    )
    mocker.patch.object(manager, "release")
    return manager


@pytest.fixture()
def jmol_jobrunner(
    user_settings, display_manager, jmol_executable, ffmpeg_executable
):
    return JmolMovieJobRunner(
        user_settings=user_settings,
        display_manager=display_manager,
        jmol=jmol_executable,
        ffmpeg=ffmpeg_executable,
    )


@pytest.fixture()
def fake_jobrunner(user_settings):
    return FakeJmolMovieJobRunner(user_settings=user_settings)


class FakeTools:
    """
    Stands in for subprocess.run in the runner module.

    Jmol calls write `frames` still images into the working directory and
    ffmpeg calls write a movie of `movie_size` bytes (or nothing if None).
    Every call is recorded together with the bytes of the script Jmol
    was given.
    """

    def __init__(self, frames=72, movie_size=128):
        self.frames = frames
        self.movie_size = movie_size
        self.calls = []
        self.scripts = []
        self.jmol_error = None
        self.ffmpeg_error = None

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs))
        cwd = kwargs["cwd"]
        if "-jar" in command:
            if self.jmol_error is not None:
                raise self.jmol_error
            script = command[command.index("-s") + 1]
            with open(os.path.join(cwd, script), "rb") as f:
                self.scripts.append(f.read())
            for index in range(1, self.frames + 1):
                with open(os.path.join(cwd, f"movie{index:04d}.gif"), "wb") as f:
                    f.write(b"GIF89a")
        else:
            if self.ffmpeg_error is not None:
                raise self.ffmpeg_error
            if self.movie_size is not None:
                with open(os.path.join(cwd, command[-1]), "wb") as f:
                    f.write(b"\0" * self.movie_size)
        return subprocess.CompletedProcess(args=command, returncode=0)

    @property
    def jmol_calls(self):
        return [call for call in self.calls if "-jar" in call[0]]

    @property
    def ffmpeg_calls(self):
        return [call for call in self.calls if "-jar" not in call[0]]


@pytest.fixture()
def fake_tools(mocker):
    tools = FakeTools()
    mocker.patch(
        "jmol3dmovie.jobs.movie.runner.subprocess.run", side_effect=tools
    )
    return tools
