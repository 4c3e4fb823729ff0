"""Unit tests for WikiClient."""

import pytest
from unittest.mock import patch
from requests.exceptions import ConnectionError as RequestsConnectionError, Timeout

from backlink_renamer.api_client import (
    WikiClient, WikiAPIError, TransportError, DecodeError,
    PermissionDeniedError, HTTPStatusError,
)
from backlink_renamer.config import DEFAULT_PERMISSION_DENIED_PHRASE
from backlink_renamer.models import BacklinkFlag


DENIED_STATUS = "편집 권한이 'ACL'에서 거부되었기 " + DEFAULT_PERMISSION_DENIED_PHRASE


@pytest.fixture
def client(wiki_config):
    """Create WikiClient instance."""
    return WikiClient(wiki_config)


class TestWikiClient:
    """Test WikiClient setup and request plumbing."""

    def test_initialization(self, wiki_config):
        client = WikiClient(wiki_config)

        assert client.base_url == "https://test.wiki"
        assert client.session.headers["Authorization"] == "Bearer test-token"
        assert client.session.headers["Accept"] == "application/json"
        assert client.detect_permission_denied is True

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_transport_error(self, mock_request, client):
        mock_request.side_effect = RequestsConnectionError("DNS failure")

        with pytest.raises(TransportError) as exc_info:
            client.fetch_page("Foo")

        assert "DNS failure" in str(exc_info.value)
        assert isinstance(exc_info.value, WikiAPIError)

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_timeout_is_transport_error(self, mock_request, client):
        mock_request.side_effect = Timeout("read timed out")

        with pytest.raises(TransportError):
            client.query_open_discussions("Foo")

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_no_retry_on_failure(self, mock_request, client):
        mock_request.side_effect = RequestsConnectionError("refused")

        with pytest.raises(TransportError):
            client.fetch_backlinks("Foo", "문서")

        assert mock_request.call_count == 1


class TestFetchBacklinks:
    """Test backlink discovery requests."""

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_filters_link_entries(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data={
            "backlinks": [
                {"document": "A", "flags": "link"},
                {"document": "B", "flags": "redirect"},
                {"document": "C", "flags": "include"},
                {"document": "D", "flags": "link"},
            ]
        })

        entries = client.fetch_backlinks("Foo", "문서")

        assert [e.document for e in entries] == ["A", "D"]
        assert all(e.flags == BacklinkFlag.LINK for e in entries)

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_escapes_title_and_namespace(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data={"backlinks": []})

        client.fetch_backlinks("AC/DC 밴드", "틀")

        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "https://test.wiki/api/backlink/AC%2FDC%20%EB%B0%B4%EB%93%9C"
        assert kwargs["params"] == {"namespace": "틀"}
        assert kwargs["timeout"] == 30

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_follows_from_cursor(self, mock_request, client, make_response):
        mock_request.side_effect = [
            make_response(json_data={"backlinks": [{"document": "A", "flags": "link"}], "from": "M"}),
            make_response(json_data={"backlinks": [{"document": "N", "flags": "link"}], "from": None}),
        ]

        entries = client.fetch_backlinks("Foo", "문서")

        assert [e.document for e in entries] == ["A", "N"]
        assert mock_request.call_args_list[1].kwargs["params"] == {"namespace": "문서", "from": "M"}

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_unknown_flag_is_dropped(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data={
            "backlinks": [{"document": "A", "flags": "something-new"}]
        })

        assert client.fetch_backlinks("Foo", "문서") == []

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_malformed_json(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data=ValueError("Expecting value"), text="<html>")

        with pytest.raises(DecodeError):
            client.fetch_backlinks("Foo", "문서")

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_error_status(self, mock_request, client, make_response):
        mock_request.return_value = make_response(status_code=500, json_data={"status": "boom"},
                                                  reason="Internal Server Error")

        with pytest.raises(HTTPStatusError) as exc_info:
            client.fetch_backlinks("Foo", "문서")

        assert exc_info.value.status_code == 500


class TestFetchPage:
    """Test edit-form fetching."""

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_snapshot(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data={
            "text": "See [[Foo]].", "token": "tok-1", "exists": True
        })

        snapshot = client.fetch_page("Bar")

        assert snapshot.title == "Bar"
        assert snapshot.body == "See [[Foo]]."
        assert snapshot.edit_token == "tok-1"
        assert mock_request.call_args.kwargs["url"] == "https://test.wiki/api/edit/Bar"

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_permission_denied(self, mock_request, client, make_response):
        mock_request.return_value = make_response(status_code=403, json_data={"status": DENIED_STATUS})

        with pytest.raises(PermissionDeniedError) as exc_info:
            client.fetch_page("Bar")

        assert DEFAULT_PERMISSION_DENIED_PHRASE in str(exc_info.value)

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_permission_denied_on_success_status(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data={"status": DENIED_STATUS, "token": "t"})

        with pytest.raises(PermissionDeniedError):
            client.fetch_page("Bar")

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_permission_detection_disabled(self, mock_request, wiki_config, make_response):
        client = WikiClient(wiki_config, detect_permission_denied=False)
        mock_request.return_value = make_response(json_data={
            "status": DENIED_STATUS, "text": "body", "token": "t"
        })

        snapshot = client.fetch_page("Bar")

        assert snapshot.body == "body"

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_custom_permission_phrase(self, mock_request, wiki_config, make_response):
        client = WikiClient(wiki_config, permission_denied_phrase="insufficient permissions")
        mock_request.return_value = make_response(status_code=403, json_data={
            "status": "Editing failed: insufficient permissions"
        })

        with pytest.raises(PermissionDeniedError):
            client.fetch_page("Bar")

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_missing_token(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data={"text": "body"})

        with pytest.raises(DecodeError):
            client.fetch_page("Bar")

    @pytest.mark.parametrize("json_data", [
        {"text": "[[Foo]]", "token": 12345},
        {"text": 42, "token": "t"},
        {"status": 403, "text": "[[Foo]]", "token": "t"},
        {"status": ["denied"], "token": "t"},
    ])
    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_wrongly_typed_fields(self, mock_request, json_data, client, make_response):
        mock_request.return_value = make_response(json_data=json_data)

        with pytest.raises(DecodeError) as exc_info:
            client.fetch_page("Bar")

        assert isinstance(exc_info.value, WikiAPIError)
        assert exc_info.value.response_data == json_data

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_other_error_status(self, mock_request, client, make_response):
        mock_request.return_value = make_response(status_code=404, json_data={"status": "문서가 없습니다."})

        with pytest.raises(HTTPStatusError) as exc_info:
            client.fetch_page("Bar")

        assert not isinstance(exc_info.value, PermissionDeniedError)
        assert exc_info.value.status_code == 404


class TestSubmitEdit:
    """Test edit submission."""

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_submit_payload(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data={"status": "success"})

        client.submit_edit("Bar", "new body", "tok-1", "Foo -> Baz")

        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "https://test.wiki/api/edit/Bar"
        assert kwargs["json"] == {"text": "new body", "log": "Foo -> Baz", "token": "tok-1"}

    @pytest.mark.parametrize("status_code", [300, 400, 403, 500])
    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_submit_failure_status(self, mock_request, status_code, client, make_response):
        mock_request.return_value = make_response(status_code=status_code, json_data={},
                                                  reason="Nope")

        with pytest.raises(HTTPStatusError) as exc_info:
            client.submit_edit("Bar", "body", "tok", "log")

        assert exc_info.value.status_code == status_code
        assert f"status {status_code} Nope" == str(exc_info.value)


class TestDiscussions:
    """Test discussion queries."""

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_open_discussion(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data=[
            {"slug": "a", "topic": "closed one", "updated_date": 1, "status": "close"},
            {"slug": "b", "topic": "stop the bot", "updated_date": 2, "status": "normal"},
        ])

        assert client.query_open_discussions("Bot:Stop") is True
        assert mock_request.call_args.kwargs["url"] == "https://test.wiki/api/discuss/Bot%3AStop"

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_no_open_discussion(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data=[
            {"slug": "a", "topic": "old", "updated_date": 1, "status": "pause"},
        ])

        assert client.query_open_discussions("Bot:Stop") is False

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_empty_discussions(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data=[])

        assert client.list_discussions("Bot:Stop") == []

    @patch("backlink_renamer.api_client.requests.Session.request")
    def test_unexpected_shape(self, mock_request, client, make_response):
        mock_request.return_value = make_response(json_data={"status": "error"})

        with pytest.raises(DecodeError):
            client.query_open_discussions("Bot:Stop")
