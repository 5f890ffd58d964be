"""
Image storage utilities for the admin media library.
Handles upload validation, R2 keys, uploads, renames and signed URLs.
"""

import logging
import os
import uuid
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import (
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
)
from ..security_utils import sanitize_filename

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE_BYTES = 4 * 1024 * 1024  # 4MB
ALLOWED_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")
CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
PRESIGNED_URL_EXPIRATION = 3600


class ImageStorageError(Exception):
    """Raised when the object store rejects an operation."""


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def validate_image_file(filename: Optional[str], size_bytes: int) -> Tuple[bool, Optional[str]]:
    """
    Validate an image before upload.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not filename:
        return False, "No image file provided"
    ext = os.path.splitext(filename)[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        return False, f"Only {', '.join(ALLOWED_IMAGE_EXTENSIONS)} files are allowed"
    if size_bytes > MAX_IMAGE_SIZE_BYTES:
        return False, f"Image exceeds maximum size of {MAX_IMAGE_SIZE_BYTES // (1024 * 1024)}MB"
    if size_bytes == 0:
        return False, "Image file is empty"
    return True, None


def safe_image_filename(filename: str, keep_ext: Optional[str] = None) -> str:
    """Sanitized filename; ``keep_ext`` forces the extension of the original upload"""
    base, ext = os.path.splitext(sanitize_filename(filename))
    ext = keep_ext or ext.lower()
    return f"{base or 'image'}{ext}"


def generate_image_key(filename: str) -> str:
    """Format: images/{uuid}_{filename}"""
    return f"images/{uuid.uuid4().hex[:12]}_{filename}"


def public_url_for(key: str) -> Optional[str]:
    if not R2_PUBLIC_URL:
        return None
    return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"


def upload_image_to_r2(content: bytes, key: str, filename: str) -> None:
    content_type = CONTENT_TYPES.get(os.path.splitext(filename)[1].lower(), "application/octet-stream")
    try:
        get_r2_client().put_object(
            Bucket=R2_BUCKET_NAME,
            Key=key,
            Body=content,
            ContentType=content_type,
            CacheControl="public, max-age=31536000",
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ R2 upload failed for {key}: {e}")
        raise ImageStorageError(f"Upload failed: {e}") from e
    logger.info(f"✅ Uploaded image to R2: {key}")


def move_image_in_r2(old_key: str, new_key: str) -> None:
    """R2 has no rename: copy to the new key then delete the old object"""
    client = get_r2_client()
    try:
        client.copy_object(
            Bucket=R2_BUCKET_NAME,
            Key=new_key,
            CopySource={"Bucket": R2_BUCKET_NAME, "Key": old_key},
        )
        client.delete_object(Bucket=R2_BUCKET_NAME, Key=old_key)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ R2 rename failed {old_key} -> {new_key}: {e}")
        raise ImageStorageError(f"Rename failed: {e}") from e


def delete_image_from_r2(key: str) -> bool:
    """Delete an object; a failure is logged and the caller continues"""
    try:
        get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=key)
        return True
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ R2 delete failed for {key}: {e}")
        return False


def generate_presigned_image_url(key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> Optional[str]:
    try:
        return get_r2_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": R2_BUCKET_NAME, "Key": key, "ResponseContentDisposition": "inline"},
            ExpiresIn=expiration,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"❌ Failed to generate presigned URL for {key}: {e}")
        return None
