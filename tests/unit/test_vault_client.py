"""
Unit tests for syncutils.vault_client
"""

from unittest.mock import Mock, patch

import pytest
import requests

from syncutils.vault_client import VaultClient


class TestVaultClientInit:
    """Test VaultClient initialization"""

    def test_explicit_parameters(self):
        client = VaultClient(vault_addr="https://vault.example.com/", vault_token="t")

        assert client.vault_addr == "https://vault.example.com"
        assert client.headers == {"X-Vault-Token": "t", "Content-Type": "application/json"}

    def test_namespace_header(self):
        client = VaultClient(vault_addr="https://v", vault_token="t", namespace="team")

        assert client.headers["X-Vault-Namespace"] == "team"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.env")
        monkeypatch.setenv("VAULT_TOKEN", "env-token")

        client = VaultClient()

        assert client.vault_addr == "https://vault.env"
        assert client.vault_token == "env-token"

    def test_missing_address(self, monkeypatch):
        monkeypatch.delenv("VAULT_ADDR", raising=False)

        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient(vault_token="t")

    def test_missing_token(self, monkeypatch):
        monkeypatch.delenv("VAULT_TOKEN", raising=False)

        with pytest.raises(ValueError, match="VAULT_TOKEN"):
            VaultClient(vault_addr="https://v")


class TestGetSecret:
    """Test secret retrieval"""

    def setup_method(self):
        self.client = VaultClient(vault_addr="https://v", vault_token="t")

    def _response(self, status=200, payload=None):
        response = Mock()
        response.status_code = status
        response.json.return_value = payload or {}
        return response

    @patch("syncutils.vault_client.requests.get")
    def test_inserts_kv2_data_segment(self, mock_get):
        mock_get.return_value = self._response(payload={"data": {"data": {"password": "pw"}}})

        secret = self.client.get_secret("secret/tablesync/source")

        assert secret == {"password": "pw"}
        mock_get.assert_called_once_with(
            "https://v/v1/secret/data/tablesync/source",
            headers=self.client.headers,
            timeout=10,
        )

    @patch("syncutils.vault_client.requests.get")
    def test_not_found(self, mock_get):
        mock_get.return_value = self._response(status=404)

        with pytest.raises(ValueError, match="not found"):
            self.client.get_secret("secret/missing")

    @patch("syncutils.vault_client.requests.get")
    def test_empty_secret(self, mock_get):
        mock_get.return_value = self._response(payload={"data": {"data": {}}})

        with pytest.raises(ValueError, match="No data"):
            self.client.get_secret("secret/empty")

    @patch("syncutils.vault_client.requests.get")
    def test_http_error_propagates(self, mock_get):
        response = self._response(status=403)
        response.raise_for_status.side_effect = requests.HTTPError("403 Forbidden")
        mock_get.return_value = response

        with pytest.raises(requests.HTTPError):
            self.client.get_secret("secret/denied")

    @pytest.mark.parametrize("path", ["", "secret/../root", "secret/a b", "secret/$x"])
    def test_invalid_path(self, path):
        with pytest.raises(ValueError, match="Invalid secret_path"):
            self.client.get_secret(path)


class TestGetStorePassword:
    """Test password lookup"""

    def setup_method(self):
        self.client = VaultClient(vault_addr="https://v", vault_token="t")

    def test_returns_password(self):
        with patch.object(self.client, "get_secret", return_value={"password": "pw", "user": "u"}):
            assert self.client.get_store_password("secret/s") == "pw"

    def test_missing_password_field(self):
        with patch.object(self.client, "get_secret", return_value={"user": "u"}):
            with pytest.raises(ValueError, match="password"):
                self.client.get_store_password("secret/s")
