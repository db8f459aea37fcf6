import logging
from logging.handlers import RotatingFileHandler

import pytest

from gh_issue_viewer import cli
from gh_issue_viewer.config import Config, load_config, load_dotenv_token, resolve_repository
from gh_issue_viewer.errors import ConfigError, GithubError


def write(tmp_path, text, name="config.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(str(tmp_path / "absent.yaml"))
    assert cfg == Config()
    assert cfg.tick_interval == 0.25 and cfg.comment_page_size == 100


def test_values_are_read_and_normalized(tmp_path):
    cfg = load_config(write(tmp_path, (
        "owner: octo\n"
        "repo: hello\n"
        "api_url: https://ghe.example.com/api/v3/\n"
        "log_level: debug\n"
        "tick_interval: 0.5\n"
        "comment_page_size: 30\n"
        "style:\n"
        "  border: '#ff0000'\n"
    )))
    assert (cfg.owner, cfg.repo) == ("octo", "hello")
    assert cfg.api_url == "https://ghe.example.com/api/v3"
    assert cfg.log_level == "DEBUG"
    assert cfg.tick_interval == 0.5
    assert cfg.comment_page_size == 30
    assert cfg.style == {"border": "#ff0000"}


@pytest.mark.parametrize("text", [
    "- just\n- a list\n",
    "tick_interval: soon\n",
    "comment_page_size: 500\n",
    "colour: red\n",
    "log_level: LOUD\n",
    "style: plain\n",
])
def test_invalid_config_raises(tmp_path, text):
    with pytest.raises(ConfigError):
        load_config(write(tmp_path, text))


def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)


def test_resolve_repository_variants():
    cfg = Config(owner="file-owner", repo="file-repo")
    assert resolve_repository(cfg, []) == ("file-owner", "file-repo")
    assert resolve_repository(cfg, ["octo"]) == ("octo", "file-repo")
    assert resolve_repository(cfg, ["octo", "hello"]) == ("octo", "hello")
    assert resolve_repository(Config(), ["octo/hello"]) == ("octo", "hello")
    with pytest.raises(ConfigError):
        resolve_repository(Config(), ["octo"])
    with pytest.raises(ConfigError):
        resolve_repository(Config(), ["a", "b", "c"])


def test_dotenv_token(tmp_path):
    (tmp_path / ".env").write_text("# comment\nOTHER=1\nGITHUB_TOKEN='secret'\n", encoding="utf-8")
    assert load_dotenv_token([str(tmp_path)]) == "secret"
    assert load_dotenv_token([str(tmp_path / "missing")]) is None


def test_print_log_dir(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    assert cli.main(["--print-log-dir"]) == 0
    assert capsys.readouterr().out.strip() == str(tmp_path / "gh-issue-viewer")


def test_config_error_exits_with_status_2(tmp_path, capsys):
    assert cli.main(["--config", str(tmp_path / "none.yaml")]) == 2
    assert capsys.readouterr().err.startswith("error: ")


def test_setup_logging_resets_handlers(tmp_path):
    logger = cli.setup_logging("INFO", str(tmp_path))
    logger = cli.setup_logging("WARNING", str(tmp_path))
    file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].level == logging.WARNING
    assert logger.level == logging.DEBUG
    assert (tmp_path / cli.LOG_FILE).exists()
    logger = cli.setup_logging("NONE", str(tmp_path))
    assert not any(isinstance(h, RotatingFileHandler) for h in logger.handlers)


def test_login_falls_back_to_anonymous():
    class Failing:
        def current_user(self):
            raise GithubError("User lookup failed (401): Bad credentials", status=401)

    class Anonymous:
        def current_user(self):
            return ""

    assert cli.resolve_login(Failing()) == "anonymous"
    assert cli.resolve_login(Anonymous()) == "anonymous"


def test_main_builds_and_runs_app(monkeypatch, tmp_path):
    started = {}

    class FakeApp:
        def __init__(self, client, app_state, cfg):
            started["state"] = app_state
            started["api_url"] = client.api_url

        def run(self):
            started["ran"] = True

    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setattr(cli, "resolve_login", lambda client: "tester")
    monkeypatch.setattr("gh_issue_viewer.app.IssueViewerApp", FakeApp)
    assert cli.main(["octo/hello", "--api-url", "https://ghe.example.com/api/v3", "--log-level", "none"]) == 0
    assert started["ran"]
    assert started["state"].full_name == "octo/hello"
    assert started["state"].current_user == "tester"
    assert started["api_url"] == "https://ghe.example.com/api/v3"
