"""
GCP service-account credentials for the GCS uploader.
"""

import os
import logging
from typing import Optional
from google.oauth2 import service_account
from google.auth import credentials as auth_credentials


def get_credentials(credentials_path: str) -> Optional[auth_credentials.Credentials]:
    """
    Load service-account credentials from a JSON key file.

    Returns None when the path is empty, missing or unreadable, in which
    case the storage client falls back to application default credentials.

    Example:
        >>> creds = get_credentials("secrets/gcp-credentials.json")
    """
    if not credentials_path:
        return None

    if not os.path.isfile(credentials_path):
        logging.error(f"Credentials file not found: {credentials_path}")
        return None

    try:
        credentials_obj = service_account.Credentials.from_service_account_file(
            credentials_path
        )
    except (ValueError, OSError) as e:
        logging.error(f"Failed to load credentials from {credentials_path}: {e}")
        return None

    logging.info(f"Loaded GCP credentials from {credentials_path}")
    return credentials_obj
