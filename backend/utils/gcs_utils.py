from __future__ import annotations

import io
import json
import os
import logging

import dotenv
from google.cloud import storage
from google.oauth2 import service_account


dotenv.load_dotenv()
logger = logging.getLogger(__name__)

CONTENT_BASE_URL = os.getenv("CONTENT_BASE_URL", "").strip().rstrip("/")


def _get_storage_client() -> storage.Client:
    credentials_raw: str = os.getenv("GCP_CREDENTIALS", "")
    if not credentials_raw:
        return storage.Client()
    credentials_info = json.loads(credentials_raw)
    credentials = service_account.Credentials.from_service_account_info(
        credentials_info
    )
    return storage.Client(
        credentials=credentials, project=credentials_info.get("project_id")
    )


def _get_bucket(bucket_name: str) -> storage.Bucket:
    storage_client = _get_storage_client()
    return storage_client.bucket(bucket_name)


def upload_file(
    bucket_name: str,
    contents: bytes,
    destination_blob_name: str,
    content_type: str | None = None,
) -> dict:
    try:
        bucket = _get_bucket(bucket_name)
        blob = bucket.blob(destination_blob_name)
        blob.upload_from_file(io.BytesIO(contents), content_type=content_type)
        blob.reload()

        return {
            "path": blob.name,
            "content_type": blob.content_type,
            "size": blob.size,
        }
    except Exception:
        logger.exception(
            "Error uploading file to bucket %s at %s",
            bucket_name,
            destination_blob_name,
        )
        return {}


def public_url(bucket_name: str, blob_name: str) -> str:
    """URL readers fetch published content from (CDN base when configured)."""
    base = CONTENT_BASE_URL or f"https://storage.googleapis.com/{bucket_name}"
    return f"{base}/{blob_name}"
