"""
HashiCorp Vault client for fetching store credentials

Reads secrets from the KV v2 secrets engine over Vault's HTTP API.
"""

import logging
import os
import re
from typing import Any

import requests

logger = logging.getLogger(__name__)

SAFE_SECRET_PATH = re.compile(r"^[a-zA-Z0-9/_-]+$")


class VaultClient:
    """
    HashiCorp Vault client for secrets management
    """

    def __init__(
        self,
        vault_addr: str | None = None,
        vault_token: str | None = None,
        namespace: str | None = None,
        timeout: float = 10,
    ):
        """
        Initialize Vault client

        Args:
            vault_addr: Vault server address (default: from VAULT_ADDR env var)
            vault_token: Vault authentication token (default: from VAULT_TOKEN env var)
            namespace: Vault namespace (optional, for Vault Enterprise)
            timeout: HTTP timeout in seconds

        Raises:
            ValueError: If vault_addr or vault_token are not provided
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.timeout = timeout

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR environment variable "
                "or pass vault_addr parameter."
            )

        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN environment variable "
                "or pass vault_token parameter."
            )

        self.vault_addr = self.vault_addr.rstrip("/")
        self.headers = {
            "X-Vault-Token": self.vault_token,
            "Content-Type": "application/json",
        }
        if namespace:
            self.headers["X-Vault-Namespace"] = namespace

    def get_secret(self, secret_path: str) -> dict[str, Any]:
        """
        Fetch secret from Vault KV v2 secrets engine

        Args:
            secret_path: Path to secret (e.g., "secret/tablesync/source")

        Returns:
            Dictionary containing secret data

        Raises:
            ValueError: If secret_path is invalid or the secret is empty
            requests.RequestException: If the Vault request fails
        """
        if not secret_path or ".." in secret_path or not SAFE_SECRET_PATH.match(secret_path):
            raise ValueError(
                f"Invalid secret_path: {secret_path!r}. "
                "Only alphanumeric characters, slashes, underscores, and hyphens are allowed."
            )

        # KV v2 requires /data/ after the mount point
        if "/data/" not in secret_path:
            mount, _, rest = secret_path.partition("/")
            secret_path = f"{mount}/data/{rest}" if rest else f"{mount}/data"

        url = f"{self.vault_addr}/v1/{secret_path}"
        logger.debug(f"Fetching secret from: {url}")

        response = requests.get(url, headers=self.headers, timeout=self.timeout)

        if response.status_code == 404:
            raise ValueError(f"Secret not found at path: {secret_path}")

        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})
        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_store_password(self, secret_path: str) -> str:
        """
        Fetch the password of a record store.

        The secret must carry a "password" field.
        """
        secret = self.get_secret(secret_path)
        if "password" not in secret:
            raise ValueError(f"Secret at {secret_path} has no 'password' field")
        logger.info(f"Fetched store credential from Vault path {secret_path}")
        return secret["password"]
