from __future__ import annotations

from collections.abc import Iterator

import boto3
from botocore.client import Config

from app.core.config import settings


def get_s3_client(*, endpoint_url: str | None = None):
    ep = (endpoint_url or "").strip() or None
    # For AWS S3, endpoint_url must be None.
    # For S3-compatible providers (MinIO/R2/Supabase), endpoint_url is required.
    return boto3.client(
        "s3",
        endpoint_url=ep or (str(getattr(settings, "s3_endpoint_url", "") or "").strip() or None),
        aws_access_key_id=settings.s3_access_key_id,
        aws_secret_access_key=settings.s3_secret_access_key,
        region_name=settings.s3_region_name,
        config=Config(
            signature_version="s3v4",
            connect_timeout=float(getattr(settings, "s3_connect_timeout_seconds", 3.0)),
            read_timeout=float(getattr(settings, "s3_read_timeout_seconds", 60.0)),
            retries={
                "max_attempts": int(getattr(settings, "s3_max_attempts", 5)),
                "mode": "standard",
            },
            max_pool_connections=int(getattr(settings, "s3_max_pool_connections", 50)),
            s3={
                "addressing_style": str(getattr(settings, "s3_addressing_style", "path")),
            },
        ),
    )


def ensure_bucket_exists(bucket: str | None = None) -> None:
    name = bucket or settings.s3_bucket
    s3 = get_s3_client()
    try:
        s3.head_bucket(Bucket=name)
    except Exception:
        env = (getattr(settings, "app_env", "") or "").strip().lower()
        # In production we should NOT auto-create buckets.
        if env in {"prod", "production"}:
            raise

        region = str(getattr(settings, "s3_region_name", "") or "").strip() or "us-east-1"
        ep = str(getattr(settings, "s3_endpoint_url", "") or "").strip()
        is_aws = not ep
        if is_aws and region not in {"us-east-1", ""}:
            s3.create_bucket(Bucket=name, CreateBucketConfiguration={"LocationConstraint": region})
        else:
            s3.create_bucket(Bucket=name)


def public_url(object_key: str, *, bucket: str | None = None) -> str:
    base = (settings.s3_public_endpoint_url or settings.s3_endpoint_url or "").strip().rstrip("/")
    name = bucket or settings.s3_bucket
    if not base:
        return f"https://{name}.s3.{settings.s3_region_name}.amazonaws.com/{object_key}"
    return f"{base}/{name}/{object_key}"


def upload_bytes(*, object_key: str, data: bytes, content_type: str | None = None, bucket: str | None = None) -> str:
    """Upload a single object and return its public URL."""
    name = bucket or settings.s3_bucket
    ensure_bucket_exists(name)
    s3 = get_s3_client()
    params: dict[str, object] = {"Bucket": name, "Key": object_key, "Body": data}
    if content_type:
        params["ContentType"] = content_type
    s3.put_object(**params)
    return public_url(object_key, bucket=name)


def list_keys(*, bucket: str | None = None, prefix: str = "") -> Iterator[str]:
    s3 = get_s3_client()
    token: str | None = None
    while True:
        kwargs: dict[str, object] = {"Bucket": bucket or settings.s3_bucket, "Prefix": prefix, "MaxKeys": 1000}
        if token:
            kwargs["ContinuationToken"] = token
        resp = s3.list_objects_v2(**kwargs)
        for obj in resp.get("Contents") or []:
            key = str(obj.get("Key") or "")
            # Folder placeholders carry no payload.
            if key and not key.endswith("/"):
                yield key
        if not resp.get("IsTruncated"):
            break
        token = resp.get("NextContinuationToken")
        if not token:
            break


def download_bytes(*, object_key: str, bucket: str | None = None) -> bytes:
    s3 = get_s3_client()
    resp = s3.get_object(Bucket=bucket or settings.s3_bucket, Key=object_key)
    return resp["Body"].read()
