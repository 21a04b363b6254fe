"""
Upload configuration helpers.
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional


# Environment variables recognised for the S3 backend (same names as the
# .env file used by the upload server).
S3_ENV_KEYS = {
    "S3_BUCKET_NAME": "bucket_name",
    "AWS_REGION": "region",
    "AWS_ACCESS_KEY_ID": "access_key_id",
    "AWS_SECRET_ACCESS_KEY": "secret_access_key",
}


def apply_env_overrides(upload_cfg: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Fill upload.s3 settings from environment variables.

    Environment values win over the YAML config. Modifies upload_cfg in
    place and returns it.
    """
    environ = os.environ if environ is None else environ
    s3_cfg = upload_cfg.setdefault("s3", {}) or {}
    upload_cfg["s3"] = s3_cfg
    for env_key, cfg_key in S3_ENV_KEYS.items():
        value = environ.get(env_key)
        if value:
            s3_cfg[cfg_key] = value
    return upload_cfg


def check_upload_config(upload_cfg: Dict[str, Any]) -> bool:
    """
    Check that the selected upload backend has what it needs.

    Returns:
        True if an uploader can be built from upload_cfg.
    """
    if not isinstance(upload_cfg, dict):
        logging.error("Invalid upload configuration: not a mapping")
        return False

    backend = (upload_cfg.get("backend") or "s3").lower()
    if backend == "s3":
        required = ["bucket_name", "region"]
    elif backend == "gcs":
        required = ["bucket_name"]
    else:
        logging.error(f"Invalid upload configuration: unknown backend '{backend}'")
        return False

    section = upload_cfg.get(backend) or {}
    for setting in required:
        if not section.get(setting):
            logging.error(f"Invalid upload configuration: missing 'upload.{backend}.{setting}'")
            return False
    return True
