import os

import pytest

from jmol3dmovie.jobs.exceptions import (
    ConfigurationError,
    ExecutableNotFoundError,
)
from jmol3dmovie.settings.executable import (
    FFmpegExecutable,
    JavaExecutable,
    JmolExecutable,
    XvfbExecutable,
)
from jmol3dmovie.settings.profiles import (
    QUALITY_PROFILES,
    get_quality_profile,
    profile_from_large_file,
)
from jmol3dmovie.settings.user import (
    DEFAULT_TIMEOUTS,
    Jmol3DMovieUserSettings,
)


class TestUserSettings:
    def test_defaults_without_file(self, user_settings):
        assert user_settings.data == {}
        assert user_settings.java == "java"
        assert user_settings.jmol_jar is None
        assert user_settings.xvfb == "Xvfb"
        assert user_settings.xvfb_helper is None
        assert user_settings.xvfb_screen == "1280x1024x24"
        assert user_settings.ffmpeg == "ffmpeg"
        assert user_settings.ffmpeg_legacy is True
        assert user_settings.timeouts == DEFAULT_TIMEOUTS

    def test_empty_file(self, write_user_settings):
        write_user_settings("")
        assert Jmol3DMovieUserSettings().data == {}

    def test_values_from_file(self, write_user_settings):
        write_user_settings(
            "JAVA: /usr/lib/jvm/bin/java\n"
            "JMOL_JAR: ~/prog/jmol/Jmol.jar\n"
            "XVFB_HELPER: ~/bin/start_xvfb.pl\n"
            "XVFB_SCREEN: 640x480x16\n"
            "FFMPEG: /opt/ffmpeg/ffmpeg\n"
            "FFMPEG_LEGACY: false\n"
            "TIMEOUTS:\n"
            "  jmol: 120\n"
            "  FFMPEG: 60.5\n"
        )
        settings = Jmol3DMovieUserSettings()
        assert settings.java == "/usr/lib/jvm/bin/java"
        assert settings.jmol_jar == os.path.expanduser("~/prog/jmol/Jmol.jar")
        assert settings.xvfb_helper == [
            os.path.expanduser("~/bin/start_xvfb.pl")
        ]
        assert settings.xvfb_screen == "640x480x16"
        assert settings.ffmpeg == "/opt/ffmpeg/ffmpeg"
        assert settings.ffmpeg_legacy is False
        assert settings.timeouts == {"XVFB": 30, "JMOL": 120, "FFMPEG": 60.5}

    def test_environment_overrides_file(self, write_user_settings, monkeypatch):
        write_user_settings("FFMPEG: /opt/ffmpeg/ffmpeg\n")
        monkeypatch.setenv("JMOL3DMOVIE_FFMPEG", "/usr/bin/ffmpeg")
        monkeypatch.setenv("JMOL3DMOVIE_FFMPEG_LEGACY", "no")
        settings = Jmol3DMovieUserSettings()
        assert settings.ffmpeg == "/usr/bin/ffmpeg"
        assert settings.ffmpeg_legacy is False

    def test_unknown_timeout_ignored(self, write_user_settings, caplog):
        write_user_settings("TIMEOUTS:\n  PYMOL: 10\n")
        assert Jmol3DMovieUserSettings().timeouts == DEFAULT_TIMEOUTS
        assert "Ignoring unknown timeout setting PYMOL" in caplog.text

    def test_not_a_mapping(self, write_user_settings):
        write_user_settings("- JAVA\n- FFMPEG\n")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            Jmol3DMovieUserSettings()

    def test_invalid_yaml(self, write_user_settings):
        write_user_settings("TIMEOUTS: [JMOL: 10\n")
        with pytest.raises(ConfigurationError, match="Cannot read"):
            Jmol3DMovieUserSettings()

    def test_not_utf8(self, isolated_user_settings):
        (isolated_user_settings / "usersettings.yaml").write_bytes(
            b"FFMPEG: /opt/caf\xe9/ffmpeg\n"
        )
        with pytest.raises(ConfigurationError, match="Cannot read"):
            Jmol3DMovieUserSettings()

    def test_timeouts_not_a_mapping(self, write_user_settings):
        write_user_settings("TIMEOUTS: 30\n")
        settings = Jmol3DMovieUserSettings()
        with pytest.raises(ConfigurationError, match="TIMEOUTS"):
            settings.timeouts

    @pytest.mark.parametrize(
        "value", ["soon", "-5", "0", ".inf", ".nan", "true", "[10]"]
    )
    def test_invalid_timeout(self, write_user_settings, value):
        write_user_settings(f"TIMEOUTS:\n  JMOL: {value}\n")
        with pytest.raises(ConfigurationError, match="Timeout JMOL"):
            Jmol3DMovieUserSettings().timeouts

    def test_numeric_string_timeout(self, write_user_settings):
        write_user_settings("TIMEOUTS:\n  XVFB: '12'\n")
        assert Jmol3DMovieUserSettings().timeouts["XVFB"] == 12

    def test_invalid_xvfb_helper(self, write_user_settings):
        write_user_settings("XVFB_HELPER: 5\n")
        with pytest.raises(ConfigurationError, match="XVFB_HELPER"):
            Jmol3DMovieUserSettings().xvfb_helper

    def test_config_dir_argument(self, tmp_path):
        config_dir = tmp_path / "other"
        config_dir.mkdir()
        (config_dir / "usersettings.yaml").write_text("XVFB: /usr/X11/Xvfb\n")
        settings = Jmol3DMovieUserSettings(config_dir=str(config_dir))
        assert settings.yaml == str(config_dir / "usersettings.yaml")
        assert settings.xvfb == "/usr/X11/Xvfb"


class TestExecutables:
    def test_path_must_exist(self, tmp_path):
        ffmpeg = FFmpegExecutable(executable=str(tmp_path / "ffmpeg"))
        with pytest.raises(ExecutableNotFoundError):
            ffmpeg.get_executable()
        (tmp_path / "ffmpeg").write_text("")
        assert ffmpeg.get_executable() == str(tmp_path / "ffmpeg")

    def test_bare_name_looked_up_on_path(self, mocker):
        which = mocker.patch(
            "jmol3dmovie.settings.executable.shutil.which",
            return_value="/usr/bin/ffmpeg",
        )
        assert FFmpegExecutable().get_executable() == "/usr/bin/ffmpeg"
        which.assert_called_once_with("ffmpeg")

    def test_bare_name_not_on_path(self, mocker):
        mocker.patch(
            "jmol3dmovie.settings.executable.shutil.which", return_value=None
        )
        with pytest.raises(ExecutableNotFoundError) as e:
            JavaExecutable().get_executable()
        assert "not found in PATH" in str(e.value)

    def test_jmol_not_configured(self, user_settings):
        jmol = JmolExecutable.from_user_settings(user_settings)
        with pytest.raises(ExecutableNotFoundError) as e:
            jmol.get_executable()
        assert "JMOL_JAR" in str(e.value)

    def test_jmol_command(self, jmol_executable, program_folder):
        assert jmol_executable.get_command() == [
            str(program_folder / "java"),
            "-jar",
            str(program_folder / "Jmol.jar"),
        ]

    def test_jmol_from_user_settings(self, write_user_settings, program_folder):
        write_user_settings(
            f"JAVA: {program_folder / 'java'}\n"
            f"JMOL_JAR: {program_folder / 'Jmol.jar'}\n"
        )
        jmol = JmolExecutable.from_user_settings(Jmol3DMovieUserSettings())
        assert jmol.get_command()[1:] == [
            "-jar",
            str(program_folder / "Jmol.jar"),
        ]

    def test_ffmpeg_from_user_settings(self, write_user_settings):
        write_user_settings("FFMPEG: /opt/ffmpeg\nFFMPEG_LEGACY: false\n")
        ffmpeg = FFmpegExecutable.from_user_settings(Jmol3DMovieUserSettings())
        assert ffmpeg.executable == "/opt/ffmpeg"
        assert ffmpeg.legacy is False

    def test_default_xvfb_helper(self, user_settings):
        xvfb = XvfbExecutable.from_user_settings(user_settings)
        command = xvfb.get_helper_command()
        assert command[1:] == [
            "-m",
            "jmol3dmovie.scripts.start_xvfb",
            "--xvfb",
            "Xvfb",
            "--screen",
            "1280x1024x24",
        ]


class TestQualityProfiles:
    def test_regular(self):
        profile = get_quality_profile()
        assert profile.name == "regular"
        assert profile.frames == 72
        assert profile.frames * profile.degrees_per_frame == 360
        assert (profile.width, profile.height) == (480, 480)
        assert profile.frame_rate == 10
        assert profile.bitrate_tag == "3200k"
        assert profile.stills_script_name == "jmol_create_stills72.spt"

    def test_large(self):
        profile = profile_from_large_file(True)
        assert profile is QUALITY_PROFILES["large"]
        assert profile.frames == 144
        assert profile.frames * profile.degrees_per_frame == 360
        assert (profile.width, profile.height) == (640, 640)
        assert profile.frame_rate == 20
        assert profile.bitrate == 6400000
        assert profile.bitrate_tag == "6400k"

    def test_lookup(self):
        assert get_quality_profile("LARGE") is QUALITY_PROFILES["large"]
        profile = QUALITY_PROFILES["regular"]
        assert get_quality_profile(profile) is profile
        assert profile_from_large_file(False) is profile

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_quality_profile("huge")
