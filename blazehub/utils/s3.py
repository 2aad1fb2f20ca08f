from typing import Optional

import boto3
from botocore.client import Config as BotoConfig

from blazehub.core.config import Settings

def make_s3_client(settings: Settings, endpoint_url: Optional[str] = None):
    endpoint = endpoint_url or settings.S3_ENDPOINT
    cfg = BotoConfig(
        signature_version="s3v4",
        s3={"addressing_style": "path" if endpoint else "auto"},
    )
    return boto3.client(
        "s3",
        endpoint_url=endpoint,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_KEY,
        aws_secret_access_key=settings.S3_SECRET,
        config=cfg,
        use_ssl=(endpoint or "https").startswith("https"),
    )

def presign_get_url(s3, *, bucket: str, key: str, ttl: int, content_type: Optional[str] = None) -> str:
    params = {"Bucket": bucket, "Key": key}
    if content_type:
        params["ResponseContentType"] = content_type
    return s3.generate_presigned_url(
        ClientMethod="get_object",
        Params=params,
        ExpiresIn=ttl,
    )
