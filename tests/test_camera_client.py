# tests/test_camera_client.py
"""Unit tests for the HTTP client: headers, pagination, token refresh and payload helpers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json
import pytest
from unittest.mock import MagicMock, patch

from verkcli.exceptions import ApiError, InvalidArgumentError
from verkcli.schemas.config_file import AuthConfig, ProfileConfig
from verkcli.services.camera_client import (
    ApiContext, build_headers, build_request_url, fetch_all_cameras, fetch_cameras_page, fetch_thumbnail,
    filter_cameras, find_camera, is_token_refresh_needed,
)
from verkcli.utils.json_parser import extract_device_array, pick_string


def make_response(status=200, body=None, content_type="application/json", raw=None):
    resp = MagicMock()
    resp.status_code = status
    resp.content = raw if raw is not None else json.dumps(body if body is not None else {}).encode()
    resp.text = resp.content.decode("utf-8", errors="replace")
    resp.headers = {"Content-Type": content_type}
    resp.url = "https://api.verkada.com/test"
    return resp


def make_ctx(api_key="key-1", token="", headers=None, profile_headers=None, config_path=None):
    profile = ProfileConfig(
        base_url="https://api.verkada.com",
        org_id="org-1",
        auth=AuthConfig(api_key=api_key, token=token),
        headers=profile_headers or {},
    )
    return ApiContext(profile=profile, profile_name="default", config_path=config_path, headers=headers or [])


class TestHeaders:
    def test_auth_headers_added(self):
        headers = build_headers(make_ctx(api_key="k", token="t"))
        assert headers["x-api-key"] == "k"
        assert headers["x-verkada-auth"] == "t"

    def test_flags_override_profile_headers(self):
        ctx = make_ctx(profile_headers={"X-Env": "profile"}, headers=["X-Env: flag", "X-Other:  v "])
        headers = build_headers(ctx)
        assert headers["X-Env"] == "flag"
        assert headers["X-Other"] == "v"

    def test_explicit_auth_header_wins(self):
        headers = build_headers(make_ctx(api_key="k", headers=["x-api-key: explicit"]))
        assert headers["x-api-key"] == "explicit"

    def test_invalid_header_flag(self):
        with pytest.raises(ApiError):
            build_headers(make_ctx(headers=["no-colon"]))
        with pytest.raises(ApiError):
            build_headers(make_ctx(headers=[": value"]))

    def test_body_gets_json_content_type(self):
        assert build_headers(make_ctx(), with_body=True)["Content-Type"] == "application/json"
        assert "Content-Type" not in build_headers(make_ctx())

    def test_content_type_flag_is_kept_with_body(self):
        headers = build_headers(make_ctx(headers=["content-type: text/csv"]), with_body=True)
        assert headers == {"content-type": "text/csv", "x-api-key": "key-1"}


class TestRequestUrl:
    def test_path_joined_and_query_sorted(self):
        url = build_request_url("https://api.example.com/", path="/v1/foo", query=["b=2", "a=b", "a=c"])
        assert url == "https://api.example.com/v1/foo?a=b&a=c&b=2"

    def test_full_url_wins_and_keeps_its_query(self):
        url = build_request_url("https://api.example.com", full_url="https://other.example.com/x?z=1", path="/ignored",
                                query=["a=1"])
        assert url == "https://other.example.com/x?a=1&z=1"

    def test_requires_url_or_path(self):
        with pytest.raises(InvalidArgumentError):
            build_request_url("https://api.example.com")

    def test_rejects_query_without_key(self):
        with pytest.raises(InvalidArgumentError):
            build_request_url("https://api.example.com", path="/x", query=["=v"])


class TestPagination:
    def test_fetch_all_follows_tokens_and_sorts(self):
        pages = [
            make_response(body={"cameras": [{"camera_id": "cam-3"}, {"camera_id": "cam-1"}], "next_page_token": "p2"}),
            make_response(body={"cameras": [{"camera_id": "cam-2"}], "next_page_token": ""}),
        ]
        with patch("verkcli.services.camera_client.requests.request", side_effect=pages) as mock_req:
            cameras = fetch_all_cameras(make_ctx(), page_size=1000)

        assert [c["camera_id"] for c in cameras] == ["cam-1", "cam-2", "cam-3"]
        assert mock_req.call_count == 2
        first, second = mock_req.call_args_list
        assert first.kwargs["params"] == {"page_size": 200}
        assert second.kwargs["params"] == {"page_size": 200, "page_token": "p2"}
        assert first.args[1] == "https://api.verkada.com/cameras/v1/devices"

    def test_devices_envelope_accepted(self):
        resp = make_response(body={"devices": [{"id": "cam-1"}], "nextPageToken": "t"})
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            cameras, token, status = fetch_cameras_page(make_ctx())
        assert cameras == [{"id": "cam-1"}]
        assert token == "t"
        assert status == 200

    def test_error_status_raises(self):
        resp = make_response(status=403, body={"message": "forbidden"})
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            with pytest.raises(ApiError) as exc:
                fetch_cameras_page(make_ctx())
        assert exc.value.status_code == 403

    def test_html_rejected_with_hint(self):
        resp = make_response(raw=b"<!DOCTYPE html><html></html>", content_type="text/html")
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            with pytest.raises(ApiError, match="base-url"):
                fetch_cameras_page(make_ctx())

    def test_generic_envelope_accepted(self):
        resp = make_response(body={"data": [{"camera_id": "cam-1"}], "next_page_token": ""})
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            cameras, token, _ = fetch_cameras_page(make_ctx())
        assert cameras == [{"camera_id": "cam-1"}]
        assert token == ""

    def test_unparsable_page_raises(self):
        resp = make_response(body={"something": "else"})
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            with pytest.raises(ApiError):
                fetch_cameras_page(make_ctx())

    def test_find_camera_across_pages(self):
        pages = [
            make_response(body={"cameras": [{"camera_id": "cam-1"}], "next_page_token": "p2"}),
            make_response(body={"cameras": [{"camera_id": "cam-2", "name": "Lobby"}]}),
        ]
        with patch("verkcli.services.camera_client.requests.request", side_effect=pages):
            assert find_camera(make_ctx(), "cam-2") == {"camera_id": "cam-2", "name": "Lobby"}

    def test_find_camera_missing(self):
        resp = make_response(body={"cameras": []})
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            assert find_camera(make_ctx(), "cam-404") is None


class TestTokenRefresh:
    def test_detects_refresh_conditions(self):
        assert is_token_refresh_needed(400, b'{"message": "API token is required"}')
        assert is_token_refresh_needed(401, b'{"message": "Token expired"}')
        assert not is_token_refresh_needed(401, b'{"message": "bad key"}')
        assert not is_token_refresh_needed(500, b'{"message": "token expired"}')

    def test_refreshes_and_retries_once(self):
        responses = [
            make_response(status=401, body={"message": "token expired"}),
            make_response(body={"token": "fresh"}),
            make_response(body={"cameras": [{"camera_id": "cam-1"}]}),
        ]
        ctx = make_ctx(token="stale")
        with patch("verkcli.services.camera_client.requests.request", side_effect=responses) as mock_req:
            cameras, _, _ = fetch_cameras_page(ctx)

        assert cameras == [{"camera_id": "cam-1"}]
        assert ctx.profile.auth.token == "fresh"
        token_call, retry_call = mock_req.call_args_list[1], mock_req.call_args_list[2]
        assert token_call.args[0] == "POST"
        assert token_call.args[1] == "https://api.verkada.com/token"
        assert token_call.kwargs["headers"]["x-api-key"] == "key-1"
        assert retry_call.kwargs["headers"]["x-verkada-auth"] == "fresh"

    def test_refreshed_token_is_persisted(self, tmp_path):
        responses = [
            make_response(status=400, body={"message": "api token is required"}),
            make_response(body={"token": "fresh"}),
            make_response(body={"cameras": []}),
        ]
        ctx = make_ctx(config_path=str(tmp_path / "config.json"))
        with patch("verkcli.services.camera_client.requests.request", side_effect=responses), \
             patch("verkcli.services.camera_client.persist_profile_token") as mock_persist:
            fetch_cameras_page(ctx)

        mock_persist.assert_called_once()
        assert mock_persist.call_args.args[2] == "fresh"

    def test_refresh_without_api_key_fails(self):
        resp = make_response(status=401, body={"message": "token expired"})
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            with pytest.raises(ApiError, match="api key"):
                fetch_cameras_page(make_ctx(api_key=""))

    def test_token_response_without_token(self):
        responses = [
            make_response(status=401, body={"message": "token expired"}),
            make_response(body={}),
        ]
        with patch("verkcli.services.camera_client.requests.request", side_effect=responses):
            with pytest.raises(ApiError, match="missing token"):
                fetch_cameras_page(make_ctx())


class TestThumbnail:
    def test_returns_jpeg_bytes(self):
        resp = make_response(raw=b"\xff\xd8\xff\xe0jpeg", content_type="image/jpeg")
        with patch("verkcli.services.camera_client.requests.request", return_value=resp) as mock_req:
            data = fetch_thumbnail(make_ctx(), "cam-1", 1736893300, "hi-res")

        assert data.startswith(b"\xff\xd8")
        params = mock_req.call_args.kwargs["params"]
        assert params == {"camera_id": "cam-1", "timestamp": "1736893300", "resolution": "hi-res"}

    def test_json_body_is_an_error(self):
        resp = make_response(body={"message": "no footage"})
        with patch("verkcli.services.camera_client.requests.request", return_value=resp):
            with pytest.raises(ApiError):
                fetch_thumbnail(make_ctx(), "cam-1", 1736893300)

    def test_invalid_resolution(self):
        with pytest.raises(InvalidArgumentError):
            fetch_thumbnail(make_ctx(), "cam-1", 0, "4k")


class TestPayloadHelpers:
    def test_pick_string_first_non_empty(self):
        assert pick_string({"camera_id": "", "id": "x"}, "camera_id", "id") == "x"

    def test_pick_string_renders_scalars(self):
        assert pick_string({"v": True}, "v") == "true"
        assert pick_string({"v": 42.0}, "v") == "42"
        assert pick_string({"v": 1.5}, "v") == "1.5"
        assert pick_string({"v": None, "w": {"a": 1}}, "v", "w") == ""

    def test_extract_bare_array(self):
        assert extract_device_array(b'[{"id": "a"}, 3]') == [{"id": "a"}]

    def test_extract_single_unknown_array(self):
        assert extract_device_array(b'{"items": [{"id": "a"}]}') == [{"id": "a"}]

    def test_extract_ambiguous(self):
        with pytest.raises(ValueError):
            extract_device_array(b'{"a": [], "b": []}')

    def test_filter_by_query_and_label(self):
        cams = [{"camera_id": "cam-1", "name": "Door"}, {"camera_id": "cam-2", "name": "Lobby"}]
        assert filter_cameras(cams, query="DOOR") == [cams[0]]
        assert filter_cameras(cams, query="front", labels={"cam-2": "Front desk"}) == [cams[1]]
        assert filter_cameras(cams, camera_id="cam-2") == [cams[1]]
        assert filter_cameras(cams) == cams
