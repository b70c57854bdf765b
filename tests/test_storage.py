"""
Tests for StorageResource and PluginsResource
"""
import json

import pytest

from mintology_sdk import ConfigurationError, UpstreamError, ValidationError
from mintology_sdk.models.errors import INVALID_STORAGE_KEY, KEY_NOT_SPECIFIED
from mintology_sdk.resources import is_valid_key, sanitize_file_name

from .conftest import API_URL, AUTH_URL


class TestFileNames:
    """Tests for file name sanitization."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("My Photo!!.PNG", "My-Photo.PNG"),
            ("cover art (final).jpg", "cover-art-final.jpg"),
            ("layer_01.png", "layer01.png"),
            ("ünïcode.gif", "ncode.gif"),
        ],
    )
    def test_sanitize(self, name, expected):
        """Should replace spaces with hyphens and drop unsafe characters."""
        assert sanitize_file_name(name) == expected

    def test_key_validity(self):
        """Should require prefix/fileId/fileName keys."""
        assert is_valid_key("uploads/abc/file.png")
        assert not is_valid_key("abc/file.png")
        assert not is_valid_key("")


class TestUpload:
    """Tests for upload URL requests."""

    async def test_image_upload(self, client, mock_api, mock_responses):
        """Should return the data member of the response."""
        mock_api.add_response(url=f"{API_URL}storage/upload-url", method="POST", json=mock_responses["upload"])

        result = await client.storage.upload("Cover Art.png", "image/png")

        assert result.value == mock_responses["upload"]["data"]
        request = mock_api.requests[0]
        assert request.headers["API-Key"] == "test-key"
        assert json.loads(request.content) == {"name": "Cover-Art.png", "type": "image/png"}

    async def test_generative_layer_upload(self, client, mock_api, mock_responses):
        """Should place generative layers under the project prefix."""
        mock_api.add_response(url=f"{API_URL}storage/upload-url", method="POST", json=mock_responses["upload"])

        await client.storage.upload("Background 1.png", "image/png", kind="layer", project_id="p1")

        body = json.loads(mock_api.requests[0].content)
        assert body["prefix"] == "generative-layers/p1"
        assert body["skip_file_id_generation"] is True
        assert body["root_directory"] == "generative-source"

    async def test_missing_key_makes_no_request(self, keyless_client, mock_api):
        """Should fail locally without a tenant key."""
        result = await keyless_client.storage.upload("a.png")

        assert isinstance(result.error, ConfigurationError)
        assert result.error.message == KEY_NOT_SPECIFIED
        assert mock_api.requests == []

    async def test_upstream_error(self, client, mock_api):
        """Should keep the vendor body on errors."""
        mock_api.add_response(
            url=f"{API_URL}storage/upload-url",
            method="POST",
            status_code=403,
            json={"message": "Forbidden"},
        )

        result = await client.storage.upload("a.png")

        assert isinstance(result.error, UpstreamError)
        assert result.error.status_code == 403
        assert result.error.body == {"message": "Forbidden"}


class TestRemove:
    """Tests for file removal."""

    async def test_remove(self, client, mock_api):
        """Should delete by file id and name."""
        mock_api.add_response(url=f"{API_URL}storage/abc/file.png", method="DELETE", json={"deleted": True})

        result = await client.storage.remove("uploads/abc/file.png")

        assert result.value == {"deleted": True}

    @pytest.mark.parametrize("key", ["", None, "only/two"])
    async def test_invalid_key(self, client, mock_api, key):
        """Should reject malformed keys without a request."""
        result = await client.storage.remove(key)

        assert isinstance(result.error, ValidationError)
        assert result.error.message == INVALID_STORAGE_KEY
        assert mock_api.requests == []


class TestPlugins:
    """Tests for plugin registration and account lookups."""

    async def test_register(self, client, mock_api, mock_responses):
        """Should register with a client-credentials bearer token."""
        mock_api.add_response(url=f"{AUTH_URL}oauth2/token", method="POST", json=mock_responses["token"])
        mock_api.add_response(url=f"{API_URL}plugins/register", method="POST", json={"api_key": "new-key"})

        result = await client.plugins.register("admin@example.com")

        assert result.value == {"api_key": "new-key"}
        request = mock_api.requests[1]
        assert request.headers["Authorization"] == "Bearer access-123"
        assert json.loads(request.content) == {"email": "admin@example.com", "plugin_type": "Wordpress"}

    async def test_register_token_failure(self, client, mock_api):
        """Should stop when no token can be obtained."""
        mock_api.add_response(url=f"{AUTH_URL}oauth2/token", method="POST", status_code=401, json={"error": "invalid_client"})

        result = await client.plugins.register("admin@example.com")

        assert isinstance(result.error, UpstreamError)
        assert len(mock_api.requests) == 1

    async def test_organization_id(self, client, mock_api):
        """Should read the organization id of the account."""
        mock_api.add_response(url=f"{API_URL}me", json={"organization_id": "org_1"})

        result = await client.plugins.organization_id("user-token")

        assert result.value == "org_1"
        assert mock_api.requests[0].headers["Authorization"] == "Bearer user-token"

    async def test_me_requires_token(self, client, mock_api):
        """Should reject an empty bearer token."""
        result = await client.plugins.me("")

        assert result.error.error_code == "TOKEN_MISSING"
        assert mock_api.requests == []
