# Author: PB and Claude
# Date: 2026-10-19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ---
# test/test_node_api.py

"""
Tests for the IPFSClient HTTP layer.

These tests verify the requests sent to the kubo RPC API and how its
responses and errors are interpreted.
"""

import logging
from unittest.mock import MagicMock, PropertyMock, patch

import pytest
import requests

from ipfs_filesystem.node_api import IPFSClient, NodeAPIError


def _response(text="{}", status_code=200, json_data=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


class TestClientInit:
    def test_base_url_format(self):
        client = IPFSClient("ipfs.local", 5002)
        assert client.base_url == "http://ipfs.local:5002/api/v0"

    def test_defaults(self):
        client = IPFSClient()
        assert client.base_url == "http://127.0.0.1:5001/api/v0"
        assert client.timeout is None


class TestRequest:
    def test_always_posts_to_endpoint(self):
        client = IPFSClient("localhost", timeout=5)
        with patch("requests.Session.post") as mock_post:
            mock_post.return_value = _response('{"ID": "12D3"}')
            assert client.id() == {"ID": "12D3"}

            assert mock_post.call_args[0][0] == "http://localhost:5001/api/v0/id"
            assert mock_post.call_args.kwargs["timeout"] == 5

    def test_error_message_from_json(self):
        client = IPFSClient("localhost")
        body = {"Message": "file does not exist", "Code": 0, "Type": "error"}
        with patch("requests.Session.post") as mock_post:
            mock_post.return_value = _response(str(body), 500, body)
            with pytest.raises(NodeAPIError) as excinfo:
                client.files_stat("/missing")

        assert str(excinfo.value) == "file does not exist"
        assert excinfo.value.status_code == 500
        assert excinfo.value.response == body
        assert excinfo.value.is_not_found is True

    def test_error_without_json_uses_text(self):
        client = IPFSClient("localhost")
        with patch("requests.Session.post") as mock_post:
            mock_post.return_value = _response("404 page not found", 404)
            with pytest.raises(NodeAPIError, match="404 page not found") as excinfo:
                client.files_rm("/a")

        assert excinfo.value.response is None

    def test_ndjson_returns_last_line(self):
        client = IPFSClient("localhost")
        text = '{"Name": "a", "Bytes": 10}\n{"Name": "a.txt", "Hash": "QmA", "Size": "18"}\n'
        with patch("requests.Session.post") as mock_post:
            mock_post.return_value = _response(text)
            assert client._json("/add") == {"Name": "a.txt", "Hash": "QmA", "Size": "18"}

    def test_empty_body(self):
        client = IPFSClient("localhost")
        with patch("requests.Session.post") as mock_post:
            mock_post.return_value = _response("")
            assert client._json("/files/stat") == {}


class TestNodeAPIError:
    def test_basic_error(self):
        error = NodeAPIError("boom")
        assert str(error) == "boom"
        assert error.status_code is None
        assert error.response is None

    @pytest.mark.parametrize("message,expected", [
        ("file does not exist", True),
        ("merkledag: not found", True),
        ("no link named \"x\" under QmDir", True),
        ("context deadline exceeded", False),
        ("connection refused", False),
    ])
    def test_is_not_found(self, message, expected):
        assert NodeAPIError(message).is_not_found is expected


class TestEndpoints:
    @pytest.fixture
    def post(self):
        with patch("requests.Session.post") as mock_post:
            mock_post.return_value = _response("{}")
            yield mock_post

    def _endpoint(self, post):
        return post.call_args[0][0].rsplit("/api/v0", 1)[1]

    def test_add(self, post):
        post.return_value = _response('{"Name": "a.txt", "Hash": "QmA", "Size": "3"}')
        result = IPFSClient("localhost").add("a.txt", b"abc", pin=True)

        assert result["Hash"] == "QmA"
        assert self._endpoint(post) == "/add"
        assert post.call_args.kwargs["params"] == {"pin": "true", "wrap-with-directory": "false"}
        assert post.call_args.kwargs["headers"]["Content-Type"].startswith("multipart/form-data")

    def test_add_unpinned(self, post):
        IPFSClient("localhost").add("a.txt", b"abc")
        assert post.call_args.kwargs["params"]["pin"] == "false"

    def test_files_read(self, post):
        post.return_value.content = b"data"
        assert IPFSClient("localhost").files_read("/a.txt") == b"data"
        assert post.call_args.kwargs["params"] == {"arg": "/a.txt"}

    def test_files_read_stream(self, post):
        post.return_value.iter_content.return_value = iter([b"da", b"ta"])
        chunks = IPFSClient("localhost").files_read("/a.txt", stream=True)

        assert b"".join(chunks) == b"data"
        assert post.call_args.kwargs["stream"] is True

    def test_files_ls(self, post):
        IPFSClient("localhost").files_ls("/dir")
        assert self._endpoint(post) == "/files/ls"
        assert post.call_args.kwargs["params"] == {"arg": "/dir", "long": "true", "U": "true"}

    def test_files_cp_sends_two_args(self, post):
        IPFSClient("localhost").files_cp("/ipfs/QmA", "/a.txt", parents=True)
        assert post.call_args.kwargs["params"] == [
            ("arg", "/ipfs/QmA"), ("arg", "/a.txt"), ("parents", "true"),
        ]

    def test_files_mv(self, post):
        IPFSClient("localhost").files_mv("/a", "/b")
        assert self._endpoint(post) == "/files/mv"
        assert post.call_args.kwargs["params"] == [("arg", "/a"), ("arg", "/b")]

    def test_files_rm_and_mkdir(self, post):
        client = IPFSClient("localhost")
        client.files_rm("/a", recursive=True)
        assert post.call_args.kwargs["params"] == {"arg": "/a", "recursive": "true"}

        client.files_mkdir("/a/b", parents=True)
        assert self._endpoint(post) == "/files/mkdir"
        assert post.call_args.kwargs["params"] == {"arg": "/a/b", "parents": "true"}

    def test_name_publish(self, post):
        post.return_value = _response('{"Name": "k51abc", "Value": "/ipfs/QmA"}')
        result = IPFSClient("localhost").name_publish("/ipfs/QmA", key="mykey", lifetime="60s")

        assert result["Name"] == "k51abc"
        assert post.call_args.kwargs["params"] == {
            "arg": "/ipfs/QmA",
            "key": "mykey",
            "lifetime": "60s",
            "allow-offline": "false",
        }

    def test_name_publish_offline(self, post):
        IPFSClient("localhost").name_publish("/ipfs/QmA", offline=True, allow_offline=True)
        params = post.call_args.kwargs["params"]
        assert params["offline"] == "true"
        assert params["allow-offline"] == "true"
        assert params["key"] == "self"

    def test_key_gen(self, post):
        IPFSClient("localhost").key_gen("myfile")
        assert self._endpoint(post) == "/key/gen"
        assert post.call_args.kwargs["params"] == {"arg": "myfile", "type": "ed25519"}

    def test_key_list(self, post):
        post.return_value = _response('{"Keys": [{"Name": "self", "Id": "k51self"}]}')
        assert IPFSClient("localhost").key_list() == [{"Name": "self", "Id": "k51self"}]

    def test_key_list_null(self, post):
        post.return_value = _response('{"Keys": null}')
        assert IPFSClient("localhost").key_list() == []

    def test_pin_remote_add(self, post):
        IPFSClient("localhost").pin_remote_add("pinata", "QmA", name="a.txt")
        assert self._endpoint(post) == "/pin/remote/add"
        assert post.call_args.kwargs["params"] == {
            "arg": "/ipfs/QmA", "service": "pinata", "name": "a.txt",
        }

    def test_pin_remote_add_without_name(self, post):
        IPFSClient("localhost").pin_remote_add("pinata", "QmA")
        assert "name" not in post.call_args.kwargs["params"]


class TestTransportErrors:
    def test_connection_error_becomes_node_api_error(self):
        client = IPFSClient("localhost", port=1)
        error = requests.exceptions.ConnectionError("connection refused")
        with patch("requests.Session.post", side_effect=error):
            with pytest.raises(NodeAPIError, match="connection refused") as excinfo:
                client.files_stat("/a")

        assert excinfo.value.__cause__ is error
        assert excinfo.value.status_code is None
        assert excinfo.value.is_not_found is False

    def test_timeout_becomes_node_api_error(self):
        client = IPFSClient("localhost", timeout=1)
        with patch("requests.Session.post", side_effect=requests.exceptions.ReadTimeout("timed out")):
            with pytest.raises(NodeAPIError, match="timed out"):
                client.key_list()


class TestBinaryReadLogging:
    def _binary_response(self, payload):
        response = MagicMock()
        response.status_code = 200
        response.content = payload
        text = PropertyMock(return_value=payload.decode("latin-1"))
        type(response).text = text
        return response, text

    def test_body_not_decoded_when_debug_off(self, caplog):
        caplog.set_level(logging.WARNING, logger="ipfs_filesystem.node_api")
        response, text = self._binary_response(bytes(range(256)) * 4)
        with patch("requests.Session.post", return_value=response):
            assert IPFSClient("localhost").files_read("/img.png") == bytes(range(256)) * 4

        text.assert_not_called()

    def test_binary_preview_when_debug_on(self, caplog):
        caplog.set_level(logging.DEBUG, logger="ipfs_filesystem.node_api")
        response, text = self._binary_response(b"\x89PNG" + b"\x00" * 1000)
        with patch("requests.Session.post", return_value=response):
            IPFSClient("localhost").files_read("/img.png")

        text.assert_not_called()
        assert "Response body: b'\\x89PNG" in caplog.text
