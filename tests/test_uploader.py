"""
Tests for object-storage uploaders and upload config helpers.
"""

import re
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from cloud.uploader import GCSUploader, S3Uploader, create_uploader, make_object_key
from cloud.utils import apply_env_overrides, check_upload_config
from models.errors import UploadError

UUID_RE = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


class TestObjectKey:
    def test_keeps_extension(self):
        assert re.fullmatch(UUID_RE + r"\.jpg", make_object_key("filtered-image.jpg"))

    def test_defaults_to_jpg(self):
        assert make_object_key("blob").endswith(".jpg")

    def test_prefix(self):
        key = make_object_key("a.PNG", prefix="/captures/")
        assert re.fullmatch(r"captures/" + UUID_RE + r"\.png", key)

    def test_unique(self):
        assert make_object_key("x.jpg") != make_object_key("x.jpg")


class TestS3Uploader:
    def test_upload_returns_public_url(self):
        client = MagicMock()
        uploader = S3Uploader("my-bucket", "eu-west-1", client=client)

        url = uploader.upload(b"jpeg-bytes", "filtered-image.jpg", "image/jpeg")

        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "my-bucket"
        assert kwargs["Body"] == b"jpeg-bytes"
        assert kwargs["ContentType"] == "image/jpeg"
        assert re.fullmatch(UUID_RE + r"\.jpg", kwargs["Key"])
        assert url == f"https://my-bucket.s3.eu-west-1.amazonaws.com/{kwargs['Key']}"

    def test_client_error_maps_to_upload_error(self):
        client = MagicMock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )
        uploader = S3Uploader("my-bucket", "eu-west-1", client=client)

        with pytest.raises(UploadError) as exc_info:
            uploader.upload(b"x", "a.jpg", "image/jpeg")

        assert exc_info.value.status == 500
        assert exc_info.value.message == "Error uploading image"
        assert "AccessDenied" in exc_info.value.details

    def test_builds_boto3_client(self):
        with patch("cloud.uploader.boto3.client") as client_factory:
            S3Uploader("b", "us-east-1", access_key_id="AK", secret_access_key="SK")

        client_factory.assert_called_once_with(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="AK",
            aws_secret_access_key="SK",
        )


class TestGCSUploader:
    def test_upload_returns_public_url(self):
        bucket = MagicMock()
        uploader = GCSUploader("gcs-bucket", bucket=bucket)

        url = uploader.upload(b"data", "filtered-image.jpg", "image/jpeg")

        blob_name = bucket.blob.call_args.args[0]
        assert blob_name.startswith("captures/")
        bucket.blob.return_value.upload_from_string.assert_called_once_with(
            b"data", content_type="image/jpeg"
        )
        assert url == f"https://storage.googleapis.com/gcs-bucket/{blob_name}"

    def test_api_error_maps_to_upload_error(self):
        from google.api_core.exceptions import Forbidden

        bucket = MagicMock()
        bucket.blob.return_value.upload_from_string.side_effect = Forbidden("no access")
        uploader = GCSUploader("gcs-bucket", bucket=bucket)

        with pytest.raises(UploadError) as exc_info:
            uploader.upload(b"data", "a.jpg", "image/jpeg")

        assert exc_info.value.status == 403


class TestCreateUploader:
    def test_s3(self):
        with patch("cloud.uploader.boto3.client"):
            uploader = create_uploader({
                "backend": "s3",
                "s3": {"bucket_name": "b", "region": "us-east-1", "prefix": "shots"},
            })
        assert isinstance(uploader, S3Uploader)
        assert uploader.prefix == "shots"

    def test_s3_missing_bucket(self):
        with pytest.raises(ValueError, match="bucket_name"):
            create_uploader({"backend": "s3", "s3": {"region": "us-east-1"}})

    def test_gcs_missing_bucket(self):
        with pytest.raises(ValueError, match="bucket_name"):
            create_uploader({"backend": "gcs", "gcs": {}})

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown upload backend"):
            create_uploader({"backend": "ftp"})


class TestUploadConfig:
    def test_env_overrides(self):
        cfg = {"backend": "s3", "s3": {"bucket_name": "from-yaml"}}
        env = {"S3_BUCKET_NAME": "from-env", "AWS_REGION": "ap-south-1"}

        apply_env_overrides(cfg, environ=env)

        assert cfg["s3"]["bucket_name"] == "from-env"
        assert cfg["s3"]["region"] == "ap-south-1"
        assert "access_key_id" not in cfg["s3"]

    def test_env_overrides_create_section(self):
        cfg = {"backend": "s3", "s3": None}
        apply_env_overrides(cfg, environ={"AWS_REGION": "us-west-2"})
        assert cfg["s3"] == {"region": "us-west-2"}

    def test_check_s3(self):
        assert check_upload_config({"backend": "s3", "s3": {"bucket_name": "b", "region": "r"}})
        assert not check_upload_config({"backend": "s3", "s3": {"bucket_name": "b"}})

    def test_check_gcs(self):
        assert check_upload_config({"backend": "gcs", "gcs": {"bucket_name": "b"}})
        assert not check_upload_config({"backend": "gcs"})

    def test_check_unknown_backend(self):
        assert not check_upload_config({"backend": "ftp"})
        assert not check_upload_config(None)
