"""
Object-storage uploaders for captured images.

Every backend takes an opaque payload plus filename and content type, stores
it under a fresh uuid4 key and returns a public URL. Failures are reported
as UploadError with an HTTP-style status.
"""

from __future__ import annotations

import logging
import os
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from models.errors import UploadError
from .auth import get_credentials


def make_object_key(filename: str, prefix: str = "") -> str:
    """uuid4 key keeping the extension of filename (default .jpg)."""
    ext = os.path.splitext(filename or "")[1].lower() or ".jpg"
    key = f"{uuid.uuid4()}{ext}"
    prefix = (prefix or "").strip("/")
    return f"{prefix}/{key}" if prefix else key


class Uploader(ABC):
    """Upload collaborator contract."""

    @abstractmethod
    def upload(self, payload: bytes, filename: str, content_type: str) -> str:
        """
        Store payload and return its public URL.

        Raises:
            UploadError: The backend rejected or failed the upload.
        """


class S3Uploader(Uploader):
    """Uploads to an Amazon S3 bucket."""

    def __init__(
        self,
        bucket_name: str,
        region: str,
        prefix: str = "",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client: Any = None,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self.prefix = prefix
        if client is None:
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
        self.s3_client = client

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, payload: bytes, filename: str, content_type: str) -> str:
        key = make_object_key(filename, self.prefix)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=payload,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logging.error(f"Error uploading to S3: {e}")
            raise UploadError(500, "Error uploading image", details=str(e)) from e

        logging.info(f"Uploaded {len(payload)} bytes to s3://{self.bucket_name}/{key}")
        return self.public_url(key)


class GCSUploader(Uploader):
    """Uploads to a Google Cloud Storage bucket using service-account credentials."""

    def __init__(
        self,
        bucket_name: str,
        project_id: Optional[str] = None,
        credentials_file: Optional[str] = None,
        prefix: str = "captures",
        bucket: Any = None,
    ):
        self.bucket_name = bucket_name
        self.prefix = prefix
        self.bucket = bucket
        if self.bucket is None:
            # Import GCP libraries only if this backend is selected
            from google.cloud import storage

            credentials = get_credentials(credentials_file) if credentials_file else None
            client = storage.Client(project=project_id, credentials=credentials)
            self.bucket = client.bucket(bucket_name)

    def public_url(self, blob_name: str) -> str:
        return f"https://storage.googleapis.com/{self.bucket_name}/{blob_name}"

    def upload(self, payload: bytes, filename: str, content_type: str) -> str:
        from google.api_core.exceptions import GoogleAPICallError

        blob_name = make_object_key(filename, self.prefix)
        blob = self.bucket.blob(blob_name)
        try:
            blob.upload_from_string(payload, content_type=content_type)
        except GoogleAPICallError as e:
            logging.error(f"Error uploading to GCS: {e}")
            status = getattr(e, "code", None) or 500
            raise UploadError(int(status), "Error uploading image", details=str(e)) from e

        logging.info(f"Uploaded {len(payload)} bytes to gs://{self.bucket_name}/{blob_name}")
        return self.public_url(blob_name)


def create_uploader(upload_cfg: Dict[str, Any]) -> Uploader:
    """
    Build the uploader selected by upload.backend ("s3" or "gcs").

    Raises:
        ValueError: Unknown backend or missing bucket/region.
    """
    backend = (upload_cfg.get("backend") or "s3").lower()

    if backend == "s3":
        s3_cfg = upload_cfg.get("s3", {}) or {}
        bucket = s3_cfg.get("bucket_name")
        region = s3_cfg.get("region")
        if not bucket or not region:
            raise ValueError("upload.s3.bucket_name and upload.s3.region are required")
        return S3Uploader(
            bucket_name=bucket,
            region=region,
            prefix=s3_cfg.get("prefix", ""),
            access_key_id=s3_cfg.get("access_key_id"),
            secret_access_key=s3_cfg.get("secret_access_key"),
        )

    if backend == "gcs":
        gcs_cfg = upload_cfg.get("gcs", {}) or {}
        bucket = gcs_cfg.get("bucket_name")
        if not bucket:
            raise ValueError("upload.gcs.bucket_name is required")
        return GCSUploader(
            bucket_name=bucket,
            project_id=gcs_cfg.get("project_id"),
            credentials_file=gcs_cfg.get("credentials_file"),
            prefix=gcs_cfg.get("prefix", "captures"),
        )

    raise ValueError(f"Unknown upload backend: {backend}")
