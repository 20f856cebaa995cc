import pytest

import utils.storage
from cli.main import build_parser, main
from oauth import ACCESS_TOKEN_KEY
from utils.storage import SecretStore, StateStore


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    monkeypatch.setattr(utils.storage, "SECRETS_FILE", str(tmp_path / "secrets.json"))
    monkeypatch.setattr(utils.storage, "STATE_FILE", str(tmp_path / "state.json"))
    return tmp_path


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_watch_takes_project_id():
    args = build_parser().parse_args(["watch", "p1"])
    assert args.command == "watch"
    assert args.project_id == "p1"


def test_logout_removes_tokens_and_project(isolated_storage, capsys):
    SecretStore(str(isolated_storage / "secrets.json")).store(ACCESS_TOKEN_KEY, "access")
    StateStore(str(isolated_storage / "state.json")).update("selectedProjectId", "p1")

    main(["logout"])

    assert SecretStore(str(isolated_storage / "secrets.json")).get(ACCESS_TOKEN_KEY) is None
    assert StateStore(str(isolated_storage / "state.json")).get("selectedProjectId") is None
    assert "logged out" in capsys.readouterr().out


def test_status_without_session(capsys):
    main(["status"])

    out = capsys.readouterr().out
    assert "Access Token" in out
    assert "None" in out


def test_watch_without_session_exits_non_zero(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["watch", "p1"])

    assert excinfo.value.code == 1
    assert "Not authenticated" in capsys.readouterr().out
