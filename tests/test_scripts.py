import pytest
from click.testing import CliRunner

from jmol3dmovie.jobs.movie.display import parse_startup_output
from jmol3dmovie.scripts import start_xvfb


@pytest.fixture()
def x_files(tmp_path, monkeypatch):
    """Point the X lock and socket files into a temporary folder."""
    (tmp_path / ".X11-unix").mkdir()
    monkeypatch.setattr(
        start_xvfb, "X_LOCK_FILE", str(tmp_path / ".X{number}-lock")
    )
    monkeypatch.setattr(
        start_xvfb, "X_SOCKET_FILE", str(tmp_path / ".X11-unix" / "X{number}")
    )
    return tmp_path


@pytest.fixture()
def popen(mocker):
    mocker.patch("jmol3dmovie.scripts.start_xvfb.time.sleep")
    popen = mocker.patch("jmol3dmovie.scripts.start_xvfb.subprocess.Popen")
    popen.return_value.pid = 31337
    popen.return_value.poll.return_value = None
    return popen


class TestFindFreeDisplay:
    def test_first_free(self, x_files):
        assert start_xvfb.find_free_display(first_display=99) == 99

    def test_skips_locked_and_socket(self, x_files):
        (x_files / ".X99-lock").write_text("")
        (x_files / ".X11-unix" / "X100").write_text("")
        assert start_xvfb.display_is_free(101)
        assert not start_xvfb.display_is_free(99)
        assert start_xvfb.find_free_display(first_display=99) == 101

    def test_none_free(self, x_files):
        (x_files / ".X5-lock").write_text("")
        (x_files / ".X6-lock").write_text("")
        with pytest.raises(RuntimeError):
            start_xvfb.find_free_display(first_display=5, max_tries=2)


class TestStartXvfb:
    def test_spawn(self, popen):
        process = start_xvfb.spawn_xvfb("/usr/bin/Xvfb", ":99", "640x480x24")

        assert process.pid == 31337
        args, kwargs = popen.call_args
        assert args[0] == [
            "/usr/bin/Xvfb",
            ":99",
            "-screen",
            "0",
            "640x480x24",
            "-nolisten",
            "tcp",
        ]
        assert kwargs["start_new_session"] is True

    def test_check_running(self, popen):
        process = start_xvfb.spawn_xvfb("/usr/bin/Xvfb", ":99", "640x480x24")
        start_xvfb.check_running(process, ":99", settle_time=0.5)
        start_xvfb.time.sleep.assert_called_once_with(0.5)

    def test_exits_early(self, popen):
        popen.return_value.poll.return_value = 1
        process = start_xvfb.spawn_xvfb("/usr/bin/Xvfb", ":99", "640x480x24")
        with pytest.raises(RuntimeError):
            start_xvfb.check_running(process, ":99")


class TestEntryPoint:
    def test_prints_pid_and_display(self, x_files, popen, mocker):
        mocker.patch(
            "jmol3dmovie.scripts.start_xvfb.shutil.which",
            return_value="/usr/bin/Xvfb",
        )
        result = CliRunner().invoke(
            start_xvfb.entry_point, ["--first-display", "42"]
        )

        assert result.exit_code == 0, result.output
        assert result.output == "PID='31337'  DISPLAY=':42'\n"
        assert parse_startup_output(result.output) == (31337, ":42")

    def test_xvfb_missing(self, x_files, mocker):
        mocker.patch(
            "jmol3dmovie.scripts.start_xvfb.shutil.which", return_value=None
        )
        result = CliRunner().invoke(start_xvfb.entry_point, [])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_xvfb_fails(self, x_files, popen, mocker):
        mocker.patch(
            "jmol3dmovie.scripts.start_xvfb.shutil.which",
            return_value="/usr/bin/Xvfb",
        )
        popen.return_value.poll.return_value = 1
        result = CliRunner().invoke(start_xvfb.entry_point, [])

        assert result.exit_code == 1
        # the pid line is out before Xvfb is found to have exited
        assert result.output.startswith("PID='31337'  DISPLAY=':")
        assert "Xvfb exited with code 1" in result.output
