import logging
import os
import uuid
from pathlib import Path
from typing import Optional, List
from fastapi import HTTPException, status, UploadFile
from sqlalchemy.orm import Session
from models import AdminLog, StaffUser
import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

AWS_REGION = os.environ.get("AWS_REGION")
S3_BUCKET_NAME = os.environ.get("S3_BUCKET_NAME")
S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY") or os.environ.get("AWS_ACCESS_KEY_ID")
S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY") or os.environ.get("AWS_SECRET_ACCESS_KEY")
UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", str(Path(__file__).parent / "uploads")))
PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "")

MAX_UPLOAD_BYTES = 5 * 1024 * 1024

S3_CLIENT = None
if AWS_REGION and S3_BUCKET_NAME and S3_ACCESS_KEY and S3_SECRET_KEY:
    s3_config = Config(signature_version="s3v4", s3={"addressing_style": "virtual"})
    S3_CLIENT = boto3.client(
        "s3",
        region_name=AWS_REGION,
        aws_access_key_id=S3_ACCESS_KEY,
        aws_secret_access_key=S3_SECRET_KEY,
        endpoint_url=f"https://s3.{AWS_REGION}.amazonaws.com",
        config=s3_config,
    )


def log_admin_action(db: Session, staff: Optional[StaffUser], action: str, method: Optional[str] = None, path: Optional[str] = None, meta: Optional[dict] = None):
    db.add(AdminLog(
        staff_id=staff.id if staff else None,
        staff_username=staff.username if staff else "",
        action=action,
        method=method,
        path=path,
        meta=meta
    ))
    db.commit()


def _build_s3_url(key: str) -> str:
    if not S3_BUCKET_NAME or not AWS_REGION:
        raise RuntimeError("S3 configuration missing")
    return f"https://{S3_BUCKET_NAME}.s3.{AWS_REGION}.amazonaws.com/{key}"


def _build_local_url(key: str) -> str:
    return f"{PUBLIC_BASE_URL.rstrip('/')}/uploads/{key}"


def _unique_key(key_prefix: str, filename: str) -> str:
    extension = Path(filename or "").suffix.lower()
    return f"{key_prefix.strip('/')}/{uuid.uuid4().hex}{extension}"


def store_bytes(
    data: bytes,
    key_prefix: str,
    filename: str,
    content_type: str = "application/octet-stream",
    overwrite: bool = False,
) -> str:
    """Persist ``data`` and return its public URL.

    Objects go to S3 when a bucket is configured; otherwise they are written
    under ``UPLOAD_DIR``, which the app serves at ``/uploads``. With
    ``overwrite`` the object is stored as ``<key_prefix>/<filename>``, replacing
    any earlier copy, instead of under a fresh random name.
    """
    if not filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing filename")
    if overwrite:
        key = f"{key_prefix.strip('/')}/{Path(filename).name}"
    else:
        key = _unique_key(key_prefix, filename)

    if S3_CLIENT and S3_BUCKET_NAME:
        try:
            S3_CLIENT.put_object(
                Bucket=S3_BUCKET_NAME,
                Key=key,
                Body=data,
                ContentType=content_type
            )
        except Exception as exc:
            logger.error("S3 upload failed for %s: %s", key, exc)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed") from exc
        return _build_s3_url(key)

    target = UPLOAD_DIR / key
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        logger.error("Local upload failed for %s: %s", target, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed") from exc
    return _build_local_url(key)


async def store_upload(file: UploadFile, key_prefix: str, allowed_types: Optional[List[str]] = None, max_bytes: int = MAX_UPLOAD_BYTES) -> str:
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing filename")
    if not file.content_type:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing file content type")
    if allowed_types and file.content_type not in allowed_types:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file type")

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if len(contents) > max_bytes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"File size exceeds {max_bytes // (1024 * 1024)}MB limit")
    return store_bytes(contents, key_prefix, file.filename, content_type=file.content_type)
