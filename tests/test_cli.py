# tests/test_cli.py
"""Command-level tests: argument wiring, output formats and exit codes (HTTP mocked)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import pytest
from unittest.mock import MagicMock, patch

from verkcli import __version__
from verkcli.cli import main
from verkcli.config import settings
from verkcli.schemas.config_file import ConfigFile, LocalLabels, ProfileConfig
from verkcli.services.profile_service import load_config, write_config
from verkcli.utils.paths import cameras_index_path

CAMERAS = [
    {"camera_id": "cam-1", "name": "North Door", "site": "Cathedral", "model": "D40"},
    {"camera_id": "cam-2", "name": "Lobby", "site": "HQ", "model": "CD52"},
]


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    with patch.multiple(settings, BASE_URL=None, ORG_ID=None, API_KEY=None, TOKEN=None,
                        PROFILE=None, CONFIG_PATH=None, CACHE_DIR=str(tmp_path / "cache")):
        yield


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    write_config(path, ConfigFile(current_profile="default", profiles={
        "default": ProfileConfig(
            base_url="https://api.verkada.com",
            org_id="org-1",
            labels=LocalLabels(cameras={"cam-2": "Front desk"}),
        ),
    }))
    return str(path)


def run(*argv):
    return main(list(argv))


def build_index(config_path, cameras=CAMERAS):
    with patch("verkcli.commands.index.fetch_all_cameras", return_value=cameras) as mock_fetch:
        assert run("--config", config_path, "cameras", "index", "build") == 0
    return mock_fetch


class TestVersion:
    def test_prints_version(self, capsys):
        assert run("version") == 0
        assert capsys.readouterr().out.strip() == f"verkcli {__version__}"


class TestIndexCommands:
    def test_build_prints_hint_to_stderr(self, config_path, capsys):
        mock_fetch = build_index(config_path)
        captured = capsys.readouterr()

        expected = cameras_index_path("https://api.verkada.com", "org-1", "default")
        assert captured.out == ""
        assert f"indexed 2 cameras at {expected}" in captured.err
        assert mock_fetch.call_args.args[1] == 200

    def test_status_missing_json(self, config_path, capsys):
        assert run("--config", config_path, "--output", "json", "cameras", "index", "status") == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {
            "exists": False,
            "path": str(cameras_index_path("https://api.verkada.com", "org-1", "default")),
        }

    def test_status_missing_text_fails_with_hint(self, config_path, capsys):
        assert run("--config", config_path, "cameras", "index", "status") == 1
        assert "verkcli cameras index build" in capsys.readouterr().err

    def test_status_after_build(self, config_path, capsys):
        build_index(config_path)
        capsys.readouterr()

        assert run("--config", config_path, "--output", "json", "cameras", "index", "status") == 0
        data = json.loads(capsys.readouterr().out)
        assert data["exists"] is True
        assert data["camera_count"] == 2
        assert data["org_id"] == "org-1"
        assert data["profile"] == "default"

    def test_status_text(self, config_path, capsys):
        build_index(config_path)
        capsys.readouterr()

        assert run("--config", config_path, "cameras", "index", "status") == 0
        out = capsys.readouterr().out
        assert "camera_count: 2" in out
        assert "exists: true" in out


class TestSearchCommand:
    def test_json_output(self, config_path, capsys):
        build_index(config_path)
        capsys.readouterr()

        assert run("--config", config_path, "--output", "json", "cameras", "search", "cameras in cathedral") == 0
        data = json.loads(capsys.readouterr().out)
        assert data["query"] == "cameras in cathedral"
        assert data["result_count"] == 1
        assert data["results"][0]["camera_id"] == "cam-1"
        assert data["results"][0]["camera"]["model"] == "D40"
        assert data["index_path"].endswith("cameras.sqlite")

    def test_flags_after_subcommand(self, config_path, capsys):
        build_index(config_path)
        capsys.readouterr()

        assert run("cameras", "search", "front", "--output", "json", "--config", config_path) == 0
        data = json.loads(capsys.readouterr().out)
        assert [r["camera_id"] for r in data["results"]] == ["cam-2"]

    def test_text_table_includes_label(self, config_path, capsys):
        build_index(config_path)
        capsys.readouterr()

        assert run("--config", config_path, "cameras", "search", "lobby") == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("camera_id")
        assert "Front desk" in lines[1]

    def test_no_results_text(self, config_path, capsys):
        build_index(config_path)
        capsys.readouterr()

        assert run("--config", config_path, "cameras", "search", "garage") == 0
        assert capsys.readouterr().out == "no cameras\n"

    def test_missing_index(self, config_path, capsys):
        assert run("--config", config_path, "cameras", "search", "door") == 1
        assert "index not found" in capsys.readouterr().err

    def test_punctuation_query_fails(self, config_path, capsys):
        build_index(config_path)
        assert run("--config", config_path, "cameras", "search", "???") == 1


class TestLabelCommands:
    def test_set_updates_config_and_index(self, config_path, capsys):
        build_index(config_path)
        capsys.readouterr()

        assert run("--config", config_path, "cameras", "label", "set", "cam-1", "Nave") == 0
        assert capsys.readouterr().out.strip() == "label[cam-1]=Nave"
        assert load_config(config_path).profiles["default"].labels.cameras["cam-1"] == "Nave"

        assert run("--config", config_path, "--output", "json", "cameras", "search", "nave") == 0
        assert json.loads(capsys.readouterr().out)["result_count"] == 1

    def test_rm_hides_camera_from_label_search(self, config_path, capsys):
        build_index(config_path)
        assert run("--config", config_path, "cameras", "label", "rm", "cam-2") == 0
        capsys.readouterr()

        assert run("--config", config_path, "--output", "json", "cameras", "search", "front") == 0
        assert json.loads(capsys.readouterr().out)["result_count"] == 0

    def test_list(self, config_path, capsys):
        assert run("--config", config_path, "cameras", "label", "list") == 0
        assert capsys.readouterr().out == "cam-2\tFront desk\n"


class TestConfigCommands:
    def test_missing_config_reports_init(self, tmp_path, capsys):
        assert run("--config", str(tmp_path / "absent.json"), "cameras", "index", "status") == 1
        assert "config init" in capsys.readouterr().err

    def test_init_then_profiles(self, tmp_path, capsys):
        path = str(tmp_path / "new" / "config.json")
        assert run("--config", path, "config", "init") == 0
        assert run("--config", path, "config", "profiles") == 0
        assert capsys.readouterr().out.splitlines()[-1] == "* default"

    def test_use_unknown_profile(self, config_path, capsys):
        assert run("--config", config_path, "config", "use", "eu") == 1
        assert "not found" in capsys.readouterr().err

    def test_view_applies_flag_overrides(self, config_path, capsys):
        assert run("--config", config_path, "--org-id", "org-flag", "config", "view") == 0
        data = json.loads(capsys.readouterr().out)
        assert data["profile"] == "default"
        assert data["org_id"] == "org-flag"

    def test_path_prints_resolved_config(self, config_path, capsys):
        assert run("--config", config_path, "config", "path") == 0
        assert capsys.readouterr().out.strip() == config_path

    def test_path_json_reports_missing_file(self, tmp_path, capsys):
        path = str(tmp_path / "absent.json")
        assert run("--config", path, "--output", "json", "config", "path") == 0
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"config_path": path, "exists": False}

    def test_profiles_add_creates_second_profile(self, config_path, capsys):
        assert run("--config", config_path, "config", "profiles", "add", "eu",
                   "--base-url", "https://api.eu.verkada.com", "--org-id", "org-eu", "--api-key", "k-eu") == 0

        cfg = load_config(config_path)
        assert cfg.current_profile == "eu"
        assert cfg.profiles["eu"].base_url == "https://api.eu.verkada.com"
        assert cfg.profiles["eu"].org_id == "org-eu"
        assert cfg.profiles["eu"].auth.api_key == "k-eu"
        assert cfg.profiles["default"].labels.cameras == {"cam-2": "Front desk"}

        capsys.readouterr()
        assert run("--config", config_path, "config", "profiles") == 0
        assert capsys.readouterr().out.splitlines() == ["  default", "* eu"]

    def test_profiles_add_seeds_from_env(self, tmp_path):
        path = str(tmp_path / "config.json")
        with patch.multiple(settings, ORG_ID="org-env", API_KEY="k-env"):
            assert run("--config", path, "config", "profiles", "add", "work") == 0

        profile = load_config(path).profiles["work"]
        assert profile.base_url == "https://api.verkada.com"
        assert profile.org_id == "org-env"
        assert profile.auth.api_key == "k-env"

    def test_profiles_add_keeps_existing_values(self, config_path):
        assert run("--config", config_path, "config", "profiles", "add", "default", "--api-key", "k-new") == 0
        profile = load_config(config_path).profiles["default"]
        assert profile.org_id == "org-1"
        assert profile.auth.api_key == "k-new"

    def test_profiles_add_rejects_web_ui_base_url(self, config_path, capsys):
        assert run("--config", config_path, "config", "profiles", "add", "bad",
                   "--base-url", "https://acme.command.verkada.com") == 1
        assert "web UI" in capsys.readouterr().err
        assert "bad" not in load_config(config_path).profiles

    def test_profiles_add_rejects_blank_name(self, config_path):
        assert run("--config", config_path, "config", "profiles", "add", "  ") == 1


class TestGlobalFlagPlacement:
    def test_flags_between_groups(self, config_path, capsys):
        assert run("cameras", "--output", "json", "label", "--config", config_path, "list") == 0
        assert json.loads(capsys.readouterr().out) == {"labels": {"cam-2": "Front desk"}}

    def test_flags_on_config_group(self, config_path, capsys):
        assert run("config", "--config", config_path, "profiles") == 0
        assert capsys.readouterr().out.strip() == "* default"


def make_response(status=200, body=b"", content_type="application/json", headers=None):
    resp = MagicMock()
    resp.status_code = status
    resp.reason = "OK" if status < 400 else "Error"
    resp.content = body
    resp.text = body.decode("utf-8", errors="replace")
    resp.headers = {"Content-Type": content_type, **(headers or {})}
    resp.url = "https://api.verkada.com/test"
    return resp


class TestRequestCommand:
    def test_get_path_with_query_pretty_prints_json(self, config_path, capsys):
        resp = make_response(body=b'{"cameras":[{"camera_id":"cam-1"}]}')
        with patch("verkcli.services.camera_client.requests.request", return_value=resp) as mock_req:
            assert run("--config", config_path, "request", "--path", "/cameras/v1/devices",
                       "--query", "page_size=5", "--query", "a=b") == 0

        method, url = mock_req.call_args.args
        assert method == "GET"
        assert url == "https://api.verkada.com/cameras/v1/devices?a=b&page_size=5"
        assert mock_req.call_args.kwargs["data"] is None
        assert "Content-Type" not in mock_req.call_args.kwargs["headers"]
        assert json.loads(capsys.readouterr().out) == {"cameras": [{"camera_id": "cam-1"}]}

    def test_body_from_file_sets_json_content_type(self, config_path, tmp_path):
        payload = tmp_path / "payload.json"
        payload.write_bytes(b'{"name": "Lobby"}')
        with patch("verkcli.services.camera_client.requests.request",
                   return_value=make_response(body=b"{}")) as mock_req:
            assert run("--config", config_path, "request", "--method", "post", "--path", "/cameras/v1/foo",
                       "--body", f"@{payload}") == 0

        assert mock_req.call_args.args[0] == "POST"
        assert mock_req.call_args.kwargs["data"] == b'{"name": "Lobby"}'
        assert mock_req.call_args.kwargs["headers"]["Content-Type"] == "application/json"

    def test_header_flag_overrides_body_content_type(self, config_path):
        with patch("verkcli.services.camera_client.requests.request",
                   return_value=make_response(body=b"ok", content_type="text/plain")) as mock_req:
            assert run("--config", config_path, "-H", "Content-Type: text/plain", "request",
                       "--method", "PUT", "--path", "/x", "--body", "hello") == 0
        assert mock_req.call_args.kwargs["headers"]["Content-Type"] == "text/plain"
        assert mock_req.call_args.kwargs["data"] == b"hello"

    def test_full_url_and_show_headers(self, config_path, capsys):
        resp = make_response(body=b"plain", content_type="text/plain", headers={"X-Request-Id": "r-1"})
        with patch("verkcli.services.camera_client.requests.request", return_value=resp) as mock_req:
            assert run("--config", config_path, "request", "--url", "https://api.eu.verkada.com/v1/x?b=2",
                       "--show-headers") == 0

        assert mock_req.call_args.args[1] == "https://api.eu.verkada.com/v1/x?b=2"
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "200 OK"
        assert "X-Request-Id: r-1" in lines
        assert lines[-1] == "plain"

    def test_refreshes_token_and_retries(self, config_path):
        responses = [
            make_response(status=401, body=b'{"message": "Token expired"}'),
            make_response(body=b'{"token": "fresh"}'),
            make_response(body=b"{}"),
        ]
        with patch("verkcli.services.camera_client.requests.request", side_effect=responses) as mock_req:
            assert run("--config", config_path, "--api-key", "k", "request", "--path", "/cameras/v1/devices") == 0

        assert mock_req.call_count == 3
        assert mock_req.call_args.kwargs["headers"]["x-verkada-auth"] == "fresh"
        assert load_config(config_path).profiles["default"].auth.token == "fresh"

    def test_error_status_prints_body_and_fails(self, config_path, capsys):
        resp = make_response(status=404, body=b'{"message": "not found"}')
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            assert run("--config", config_path, "request", "--path", "/nope") == 1
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"message": "not found"}
        assert "status 404" in captured.err

    def test_requires_path_or_url(self, config_path, capsys):
        assert run("--config", config_path, "request") == 1
        assert "--url or --path" in capsys.readouterr().err

    def test_invalid_query(self, config_path, capsys):
        assert run("--config", config_path, "request", "--path", "/x", "--query", "novalue") == 1
        assert "expected k=v" in capsys.readouterr().err
