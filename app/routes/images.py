import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..errors import AppError, NotFoundError
from ..models import Image, User
from ..utils.dates import to_iso
from ..utils.image_storage import (
    ImageStorageError,
    delete_image_from_r2,
    generate_image_key,
    generate_presigned_image_url,
    move_image_in_r2,
    public_url_for,
    safe_image_filename,
    upload_image_to_r2,
    validate_image_file,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/images", tags=["Images"])


class ImageUpdate(BaseModel):
    alt_text: Optional[str] = None
    filename: Optional[str] = None


def serialize_image(image: Image) -> dict:
    return {
        "id": image.id,
        "filename": image.filename,
        "url": image.url or generate_presigned_image_url(image.storage_key),
        "alt_text": image.alt_text,
        "created_at": to_iso(image.created_at),
    }


def _get_image(db: Session, image_id: int) -> Image:
    image = db.query(Image).filter(Image.id == image_id).first()
    if not image:
        raise NotFoundError("Image not found")
    return image


@router.post("", status_code=201)
async def upload_image(
    image: UploadFile = File(...),
    alt_text: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Upload an image to R2 and record it in the media library"""
    contents = await image.read()
    is_valid, error = validate_image_file(image.filename, len(contents))
    if not is_valid:
        raise AppError(400, error, "INVALID_FILE")

    filename = safe_image_filename(image.filename)
    key = generate_image_key(filename)
    try:
        upload_image_to_r2(contents, key, filename)
    except ImageStorageError as e:
        raise AppError(500, "Image upload failed", "UPLOAD_FAILED") from e

    record = Image(filename=filename, storage_key=key, url=public_url_for(key), alt_text=alt_text or None)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"📤 Image uploaded: {record.id} ({filename})")
    return serialize_image(record)


@router.get("")
async def list_images(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    images = db.query(Image).order_by(Image.created_at.desc(), Image.id.desc()).all()
    return [serialize_image(i) for i in images]


@router.put("/{image_id}")
async def update_image(
    image_id: int,
    data: ImageUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change alt text and/or rename the stored object (extension is kept)"""
    image = _get_image(db, image_id)

    if data.filename and data.filename != image.filename:
        ext = os.path.splitext(image.filename)[1].lower()
        new_filename = safe_image_filename(data.filename, keep_ext=ext)
        new_key = generate_image_key(new_filename)
        try:
            move_image_in_r2(image.storage_key, new_key)
        except ImageStorageError as e:
            raise AppError(500, "Image rename failed", "UPLOAD_FAILED") from e
        image.filename = new_filename
        image.storage_key = new_key
        image.url = public_url_for(new_key)

    if "alt_text" in data.model_fields_set:
        image.alt_text = data.alt_text
    db.commit()
    db.refresh(image)
    return serialize_image(image)


@router.delete("/{image_id}", status_code=204)
async def delete_image(
    image_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    image = _get_image(db, image_id)
    if not delete_image_from_r2(image.storage_key):
        logger.warning(f"⚠️ Object {image.storage_key} not removed from R2, deleting record anyway")
    db.delete(image)
    db.commit()
    logger.info(f"🗑️ Image deleted: {image_id}")
    return Response(status_code=204)
