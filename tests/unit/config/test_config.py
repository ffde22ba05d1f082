from collections.abc import Callable
from pathlib import Path

import pytest

from gitstate.config import (
    DEFAULT_CONFIG,
    PROJECT_CONFIG_NAME,
    AuthorConfig,
    Config,
    ConfigLoadError,
    ConfigSourceName,
    ConfigValidationError,
    LogFormat,
    LogLevel,
    get_user_config_path,
)
from gitstate.utils import AuthorInfo

type WriteToml = Callable[[Path, str], Path]


class TestConfigDefaults:
    def test_sections(self) -> None:
        config = Config()

        assert config.logging.level is LogLevel.WARNING
        assert config.logging.format is LogFormat.TEXT
        assert config.logging.file == ""
        assert config.author == AuthorConfig()
        assert config.history.default_limit == -1

    def test_get(self) -> None:
        config = Config()

        assert config.get("logging.level") == "warning"
        assert config.get("logging.missing", "fallback") == "fallback"
        assert config.get("nonexistent") is None

    def test_to_dict_is_a_copy(self) -> None:
        config = Config()

        data = config.to_dict()
        data["logging"]["level"] = "debug"

        assert config.get("logging.level") == "warning"

    def test_to_toml(self) -> None:
        text = Config.from_dict({"author": {"name": "Ada"}}).to_toml()

        assert "[author]" in text
        assert 'name = "Ada"' in text
        assert "default_limit = -1" in text


class TestConfigFromDict:
    def test_merges_over_defaults(self) -> None:
        config = Config.from_dict({"logging": {"level": "debug"}})

        assert config.logging.level is LogLevel.DEBUG
        assert config.logging.format is LogFormat.TEXT

    def test_invalid_raises(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"logging": {"format": "xml"}})

        assert exc_info.value.key == "logging.format"
        assert "logging.format" in str(exc_info.value)

    def test_author_section(self) -> None:
        config = Config.from_dict({"author": {"name": "Ada"}})

        assert config.author.to_author_info() == AuthorInfo(name="Ada", email=None)


class TestConfigFromFile:
    def test_reads_file(self, tmp_path: Path, write_toml: WriteToml) -> None:
        path = write_toml(tmp_path / "c.toml", "[history]\ndefault_limit = 10\n")

        config = Config.from_file(path)

        assert config.history.default_limit == 10
        assert [s.name for s in config.sources] == [ConfigSourceName.PROJECT]

    def test_env_overrides_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, write_toml: WriteToml
    ) -> None:
        path = write_toml(tmp_path / "c.toml", "[history]\ndefault_limit = 10\n")
        monkeypatch.setenv("GITSTATE_HISTORY__DEFAULT_LIMIT", "3")

        assert Config.from_file(path).history.default_limit == 10
        assert Config.from_file(path, include_env=True).history.default_limit == 3

    def test_invalid_file_names_source(
        self, tmp_path: Path, write_toml: WriteToml
    ) -> None:
        path = write_toml(tmp_path / "c.toml", '[logging]\nlevel = "loud"\n')

        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_file(path)

        assert exc_info.value.source == str(path)


class TestConfigLoad:
    def test_defaults_only(self, tmp_path: Path) -> None:
        config = Config.load(project_root=tmp_path)

        assert config.to_dict() == DEFAULT_CONFIG

    def test_precedence(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, write_toml: WriteToml
    ) -> None:
        _ = write_toml(
            get_user_config_path(),
            '[logging]\nlevel = "info"\nformat = "json"\n'
            '[author]\nname = "User"\n[history]\ndefault_limit = 5\n',
        )
        _ = write_toml(
            tmp_path / PROJECT_CONFIG_NAME,
            '[logging]\nlevel = "error"\n[author]\nname = "Project"\n',
        )
        monkeypatch.setenv("GITSTATE_AUTHOR__NAME", "Env")

        config = Config.load(project_root=tmp_path)

        assert config.author.name == "Env"
        assert config.logging.level is LogLevel.ERROR
        assert config.logging.format is LogFormat.JSON
        assert config.history.default_limit == 5

    def test_numeric_author_name_from_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITSTATE_AUTHOR__NAME", "1234")

        config = Config.load(project_root=tmp_path)

        assert config.author.name == "1234"

    def test_env_limit_must_be_an_integer(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITSTATE_HISTORY__DEFAULT_LIMIT", "many")

        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.load(project_root=tmp_path)

        assert exc_info.value.source == "env"
        assert exc_info.value.key == "history.default_limit"

    def test_env_can_be_excluded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITSTATE_LOGGING__LEVEL", "debug")

        config = Config.load(project_root=tmp_path, include_env=False)

        assert config.logging.level is LogLevel.WARNING

    def test_sources_highest_first(self, tmp_path: Path) -> None:
        config = Config.load(project_root=tmp_path)

        assert [s.name for s in config.sources] == [
            ConfigSourceName.ENV,
            ConfigSourceName.PROJECT,
            ConfigSourceName.USER,
            ConfigSourceName.DEFAULT,
        ]

    def test_invalid_project_file(self, tmp_path: Path, write_toml: WriteToml) -> None:
        _ = write_toml(tmp_path / PROJECT_CONFIG_NAME, "[history]\ndefault_limit = -9\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.load(project_root=tmp_path)

        assert exc_info.value.source == "project"

    def test_unparseable_user_file(self, tmp_path: Path, write_toml: WriteToml) -> None:
        _ = write_toml(get_user_config_path(), "not = [valid\n")

        with pytest.raises(ConfigLoadError):
            _ = Config.load(project_root=tmp_path)
