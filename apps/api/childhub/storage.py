"""S3 storage for generated report files."""
from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Optional

import boto3
from botocore.config import Config

from .config import CONFIG

logger = logging.getLogger(__name__)

REPORT_PREFIX = "reports/"


class StorageNotConfigured(RuntimeError):
    """Raised when no reports bucket is configured."""


@lru_cache(maxsize=1)
def get_s3_client():
    return boto3.client("s3", region_name=CONFIG.aws_region, config=Config(signature_version="s3v4"))


def _bucket() -> str:
    if not CONFIG.reports_bucket:
        raise StorageNotConfigured("S3 bucket not configured")
    return CONFIG.reports_bucket


def report_key(extension: str, now_ms: Optional[int] = None) -> str:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{REPORT_PREFIX}report_{now_ms}.{extension}"


def presigned_download_url(key: str, expires_in: Optional[int] = None) -> str:
    expires_in = expires_in or CONFIG.download_link_ttl_seconds
    return get_s3_client().generate_presigned_url(
        "get_object",
        Params={"Bucket": _bucket(), "Key": key},
        ExpiresIn=expires_in,
    )


def upload_report(payload: bytes, key: str, content_type: str) -> str:
    """Store the file and return a download link valid for the report TTL."""
    bucket = _bucket()
    get_s3_client().put_object(Bucket=bucket, Key=key, Body=payload, ContentType=content_type)
    logger.info("report uploaded", extra={"bucket": bucket, "key": key, "bytes": len(payload)})
    return presigned_download_url(key, CONFIG.report_link_ttl_seconds)
