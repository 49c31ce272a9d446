"""End-to-end tests for the `yt` command tree.

HTTP is stubbed at `requests.Session.request`, so each test exercises config
resolution, the client, the formatter and the error reporting together.
"""

import json
import logging
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ytcli.cli import cli, main, parse_field_args

ISSUE = {
    "id": "2-1",
    "idReadable": "DEMO-1",
    "summary": "Crash on start",
    "customFields": [{"name": "State", "value": {"name": "Open"}}],
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def http(response):
    with patch("requests.Session.request") as request:
        request.return_value = response(payload=[])
        yield request


# -------------------- issue search --------------------

def test_search_empty_text(runner, credentials, http):
    result = runner.invoke(cli, ["issue", "search", "project: DEMO"])

    assert result.exit_code == 0
    assert result.stdout == "No issues found.\n"


def test_search_empty_json(runner, credentials, http):
    result = runner.invoke(cli, ["issue", "search", "project: DEMO", "--format", "json"])

    assert result.exit_code == 0
    assert result.stdout == "[]\n"


def test_search_forwards_paging_and_fields(runner, credentials, http, response):
    http.return_value = response(payload=[ISSUE])

    result = runner.invoke(cli, ["issue", "search", "#Unresolved", "--top", "5", "--skip", "10",
                                 "--fields", "id,idReadable,summary"])

    assert result.exit_code == 0
    args, kwargs = http.call_args
    assert args[:2] == ("GET", "https://yt.example.com/api/issues")
    assert kwargs["params"]["$top"] == 5
    assert kwargs["params"]["$skip"] == 10
    assert kwargs["params"]["fields"] == "id,idReadable,summary"
    assert "| DEMO-1 | Open " in result.stdout
    assert "1 issue(s) returned." in result.stdout


# -------------------- issue get / create / update --------------------

def test_get_pretty_json_is_unfiltered(runner, credentials, http, response):
    http.return_value = response(payload=ISSUE)

    result = runner.invoke(cli, ["issue", "get", "DEMO-1", "--format", "json", "--pretty"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == ISSUE
    assert result.stdout.startswith('{\n  "id": "2-1"')


def test_get_not_found(runner, credentials, http, response):
    http.return_value = response(404, {"error_description": "Entity not found"})

    result = runner.invoke(cli, ["issue", "get", "DEMO-404"])

    assert result.exit_code == 1
    assert result.stdout == ""
    assert result.stderr == '{"error":"YouTrack API error 404: Entity not found"}\n'


def test_create_prints_created_id(runner, credentials, http, response):
    http.return_value = response(payload=ISSUE)

    result = runner.invoke(cli, ["issue", "create", "--project", "DEMO", "--summary", "Crash on start"])

    assert result.exit_code == 0
    assert result.stdout.startswith("Created DEMO-1\n\n## DEMO-1: Crash on start\n")
    assert http.call_args.kwargs["json"] == {"project": {"id": "DEMO"}, "summary": "Crash on start"}


def test_update_sends_custom_fields(runner, credentials, http, response):
    http.return_value = response(payload=ISSUE)

    result = runner.invoke(cli, ["issue", "update", "DEMO-1", "--field", "Priority=Critical",
                                 "--field", "Fix versions=1.0=beta"])

    assert result.exit_code == 0
    assert result.stdout.startswith("Updated DEMO-1\n")
    assert http.call_args.kwargs["json"] == {
        "customFields": [
            {"name": "Priority", "value": {"name": "Critical"}, "$type": "SingleEnumIssueCustomField"},
            {"name": "Fix versions", "value": {"name": "1.0=beta"}, "$type": "SingleEnumIssueCustomField"},
        ]
    }


def test_update_rejects_field_without_separator(runner, credentials, http):
    result = runner.invoke(cli, ["issue", "update", "DEMO-1", "--field", "State"])

    assert result.exit_code == 1
    assert result.stderr == '{"error":"Invalid --field format: \\"State\\". Expected \\"Name=Value\\"."}\n'
    http.assert_not_called()


def test_parse_field_args_keeps_everything_after_first_equals():
    assert parse_field_args(["A=", "B=x=y"]) == [{"name": "A", "value": ""}, {"name": "B", "value": "x=y"}]


# -------------------- comments --------------------

def test_comments_text(runner, credentials, http, response):
    http.return_value = response(payload=[{"id": "4-1", "text": "first"}, {"id": "4-2", "text": "second"}])

    result = runner.invoke(cli, ["issue", "comments", "DEMO-1"])

    assert result.exit_code == 0
    assert result.stdout.count("---\n") == 2
    assert http.call_args.args[1] == "https://yt.example.com/api/issues/DEMO-1/comments"


def test_comment_add(runner, credentials, http, response):
    http.return_value = response(payload={"id": "4-3", "text": "On it"})

    result = runner.invoke(cli, ["issue", "comment", "DEMO-1", "--text", "On it"])

    assert result.exit_code == 0
    assert result.stdout.startswith("Comment added to DEMO-1\n\nComment ID: 4-3\n")
    assert http.call_args.kwargs["json"] == {"text": "On it"}


# -------------------- project / user --------------------

def test_project_list(runner, credentials, http, response):
    http.return_value = response(payload=[{"id": "0-1", "shortName": "DEMO", "name": "Demo"}])

    result = runner.invoke(cli, ["project", "list"])

    assert result.exit_code == 0
    assert "| DEMO       | Demo | 0-1 |" in result.stdout
    assert http.call_args.args[1] == "https://yt.example.com/api/admin/projects"


def test_user_me_json(runner, credentials, http, response):
    me = {"id": "1-1", "login": "jdoe", "name": "Jane Doe", "email": None}
    http.return_value = response(payload=me)

    result = runner.invoke(cli, ["user", "me", "--format", "json"])

    assert result.exit_code == 0
    assert result.stdout == '{"id":"1-1","login":"jdoe","name":"Jane Doe","email":null}\n'


# -------------------- failures --------------------

def test_missing_config_reports_json_error(runner, http):
    result = runner.invoke(cli, ["user", "me"])

    assert result.exit_code == 1
    error = json.loads(result.stderr)["error"]
    assert "baseUrl (YOUTRACK_BASE_URL)" in error
    assert "token (YOUTRACK_TOKEN)" in error
    http.assert_not_called()


def test_main_reports_usage_errors_as_json(monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["yt", "issue", "create", "--summary", "x"])

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 1
    err = json.loads(capsys.readouterr().err)
    assert "--project" in err["error"]


def test_main_success_exits_zero(monkeypatch, capsys, credentials, http):
    monkeypatch.setattr("sys.argv", ["yt", "issue", "search", "x", "--format", "json"])

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 0
    assert capsys.readouterr().out == "[]\n"


def test_main_reports_unexpected_errors_as_json(tmp_path, monkeypatch, capsys):
    # A regular file where the config directory should be makes save_config fail.
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(blocker))
    monkeypatch.setattr("sys.argv", ["yt", "setup", "--url", "https://yt.example.com", "--token", "t"])

    user = {"id": "1-1", "login": "jdoe", "name": "Jane Doe"}
    with patch("ytcli.auth.YouTrackClient.get_current_user", return_value=user):
        with pytest.raises(SystemExit) as exc:
            main()

    assert exc.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert list(json.loads(captured.err)) == ["error"]


# -------------------- logging --------------------

def test_debug_logs_each_request(runner, credentials, http, caplog):
    caplog.set_level(logging.DEBUG, logger="ytcli")

    result = runner.invoke(cli, ["--debug", "issue", "search", "x"])

    assert result.exit_code == 0
    messages = [r.getMessage() for r in caplog.records if r.name == "ytcli.client"]
    assert any(m.startswith("GET https://yt.example.com/api/issues params=") for m in messages)
    assert "GET https://yt.example.com/api/issues -> 200" in messages


def test_no_debug_logging_by_default(runner, credentials, http, caplog):
    caplog.set_level(logging.INFO, logger="ytcli")

    result = runner.invoke(cli, ["issue", "search", "x"])

    assert result.exit_code == 0
    assert not [r for r in caplog.records if r.name == "ytcli.client"]
