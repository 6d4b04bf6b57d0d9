"""Tests for configuration loading."""

import pytest

from difftargets.config import Config, _find_config_file
from difftargets.errors import ConfigError

_ENV_KEYS = [
    "DIFFTARGETS_INCLUDE", "DIFFTARGETS_EXCLUDE", "DIFFTARGETS_TEST_DIRECTORY",
    "DIFFTARGETS_MAX_TARGETS", "DIFFTARGETS_MAX_WORKERS", "DIFFTARGETS_DEBUG",
    "DIFFTARGETS_OUTPUT", "GITHUB_TOKEN", "GITHUB_API_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


class TestDefaults:
    def test_defaults(self):
        cfg = Config()
        assert "**/*.ts" in cfg.INCLUDE_PATTERNS
        assert "**/node_modules/**" in cfg.EXCLUDE_PATTERNS
        assert cfg.TEST_DIRECTORY == "__tests__"
        assert cfg.MAX_TARGETS == 50
        assert cfg.MAX_WORKERS == 1
        assert cfg.DEBUG is False
        assert cfg.GITHUB_API_URL == "https://api.github.com"

    def test_default_lists_are_copies(self):
        Config().INCLUDE_PATTERNS.append("**/*.vue")
        assert "**/*.vue" not in Config().INCLUDE_PATTERNS


class TestYaml:
    def test_load_from_cwd(self, tmp_path):
        (tmp_path / ".difftargets.yaml").write_text(
            "include_patterns: ['src/**']\n"
            "test_directory: test\n"
            "max_workers: 4\n"
            "github:\n  token: from-yaml\n  max_retries: 5\n",
            encoding="utf-8",
        )
        cfg = Config.load()
        assert cfg.INCLUDE_PATTERNS == ["src/**"]
        assert cfg.TEST_DIRECTORY == "test"
        assert cfg.MAX_WORKERS == 4
        assert cfg.GITHUB_TOKEN == "from-yaml"
        assert cfg.GITHUB_MAX_RETRIES == 5

    def test_explicit_missing_path(self, tmp_path):
        assert _find_config_file(str(tmp_path / "nope.yaml")) is None

    def test_invalid_yaml_ignored(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("include_patterns: [unclosed\n", encoding="utf-8")
        assert Config.load(str(path)).TEST_DIRECTORY == "__tests__"

    def test_bad_pattern_type(self):
        with pytest.raises(ConfigError):
            Config({"exclude_patterns": [1, 2]})

    def test_bad_worker_count(self):
        with pytest.raises(ConfigError):
            Config({"max_workers": 0})


class TestEnv:
    def test_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("DIFFTARGETS_TEST_DIRECTORY", "spec")
        monkeypatch.setenv("DIFFTARGETS_INCLUDE", "lib/**, src/**")
        monkeypatch.setenv("DIFFTARGETS_DEBUG", "true")
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        cfg = Config({"test_directory": "test", "github": {"token": "yaml-token"}})
        assert cfg.TEST_DIRECTORY == "spec"
        assert cfg.INCLUDE_PATTERNS == ["lib/**", "src/**"]
        assert cfg.DEBUG is True
        assert cfg.GITHUB_TOKEN == "env-token"

    def test_json_output(self, monkeypatch):
        monkeypatch.setenv("DIFFTARGETS_OUTPUT", "json")
        assert Config().JSON_OUTPUT is True

    def test_non_numeric_env_value(self, monkeypatch):
        monkeypatch.setenv("DIFFTARGETS_MAX_WORKERS", "abc")
        with pytest.raises(ConfigError, match="DIFFTARGETS_MAX_WORKERS"):
            Config()

    def test_bool_env_spellings(self, monkeypatch):
        monkeypatch.setenv("DIFFTARGETS_DEBUG", "1")
        assert Config().DEBUG is True
        monkeypatch.setenv("DIFFTARGETS_DEBUG", "no")
        assert Config().DEBUG is False


class TestGitHubSection:
    def test_numeric_values(self):
        cfg = Config({"github": {"max_retries": "4", "retry_delay": "0.5"}})
        assert cfg.GITHUB_MAX_RETRIES == 4
        assert cfg.GITHUB_RETRY_DELAY == 0.5

    def test_non_numeric_retry_delay(self):
        with pytest.raises(ConfigError, match="retry_delay"):
            Config({"github": {"retry_delay": "soon"}})

    def test_zero_retries_rejected(self):
        with pytest.raises(ConfigError):
            Config({"github": {"max_retries": 0}})

    def test_non_mapping_section_ignored(self):
        assert Config({"github": "tok"}).GITHUB_TOKEN == ""
