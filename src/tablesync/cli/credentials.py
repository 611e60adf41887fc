"""
Credential resolution and logging setup for the CLI.

Store passwords come from the config file first, then from environment
variables, then from Vault when --use-vault is given.
"""

import argparse
import logging
import os

import requests

from syncutils.logging import setup_logging, verbosity_to_level
from syncutils.vault_client import VaultClient

from ..errors import StoreConnectionError
from ..options import SyncOptions

logger = logging.getLogger(__name__)

PASSWORD_ENV = {
    "source": "TABLESYNC_SOURCE_PASSWORD",
    "target": "TABLESYNC_TARGET_PASSWORD",
}


def configure_logging(args: argparse.Namespace, options: SyncOptions) -> None:
    """Set up logging from the verbosity options and output flags."""
    setup_logging(
        level=verbosity_to_level(options.verbosity, debug=args.debug),
        log_file=args.log_file,
        json_format=args.json_logs,
    )


def resolve_credentials(options: SyncOptions, use_vault: bool = False) -> tuple[str | None, str | None]:
    """
    Find the password of each store.

    Args:
        options: Run options (may carry passwords and Vault paths)
        use_vault: Whether Vault may be consulted

    Returns:
        Tuple of (source_password, target_password); None when the URI or
        the driver is expected to authenticate on its own

    Raises:
        StoreConnectionError: If Vault is required but cannot provide a password
    """
    vault_client = None
    passwords = []

    for side in ("source", "target"):
        password = getattr(options, f"{side}_password") or os.getenv(PASSWORD_ENV[side])
        vault_path = getattr(options, f"{side}_vault_path") or f"secret/tablesync/{side}"

        if password is None and use_vault:
            try:
                if vault_client is None:
                    vault_client = VaultClient()
                password = vault_client.get_store_password(vault_path)
            except (ValueError, requests.RequestException) as e:
                raise StoreConnectionError(
                    f"Cannot fetch {side} credential from Vault: {e}",
                    operation="credentials",
                ) from e

        passwords.append(password)

    return passwords[0], passwords[1]
