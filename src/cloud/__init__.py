"""
Cloud module for the filter cam.

Uploads captured images to object storage (Amazon S3 or Google Cloud Storage).
"""

from .auth import get_credentials
from .uploader import GCSUploader, S3Uploader, Uploader, create_uploader, make_object_key
from .utils import apply_env_overrides, check_upload_config

__all__ = [
    "get_credentials",
    "GCSUploader",
    "S3Uploader",
    "Uploader",
    "create_uploader",
    "make_object_key",
    "apply_env_overrides",
    "check_upload_config",
]
