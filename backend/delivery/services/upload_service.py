# Overview: Service-layer operations for order images and signatures; owns the local upload store.

"""
Upload Gateway

Images are written to UPLOAD_FOLDER under a generated name and served back
from /uploads/<name>. Signatures are opaque strings kept in the database.

Callers check that the order exists and that the caller may act on it
before anything is written here.
"""

from __future__ import annotations

import os
import re
import uuid

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage

from ..extensions import db
from ..errors import InvalidInputError, PayloadTooLargeError, UnsupportedMediaTypeError
from ..models import ImageType, Order, OrderImage, OrderSignature
from ..validation import parse_enum
from .token_service import TokenClaims
from delivery.time_utils import utcnow


ALLOWED_IMAGE_EXTENSIONS = frozenset({"jpeg", "jpg", "png", "gif"})
_IMAGE_MIME_RE = re.compile(r"jpeg|jpg|png|gif")


def upload_folder() -> str:
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder


def public_url(filename: str) -> str:
    return f"{current_app.config.get('PUBLIC_BASE_URL', '')}/uploads/{filename}"


def _extension(filename: str) -> str:
    _, ext = os.path.splitext(filename or "")
    return ext.lower().lstrip(".")


def check_image(filename: str, content_type: str | None) -> str:
    """
    Both the extension and the declared MIME type must look like an image.
    Returns the normalized extension.
    """
    ext = _extension(filename)
    if ext not in ALLOWED_IMAGE_EXTENSIONS or not _IMAGE_MIME_RE.search(content_type or ""):
        raise UnsupportedMediaTypeError("Unsupported file type. Allowed: jpeg, jpg, png, gif")
    return ext


def store_image(file: FileStorage) -> tuple[str, str]:
    """
    Validate and persist an uploaded image.

    Returns (stored_filename, public_uri).
    """
    # Only the extension of the client name is used; the stored name is generated
    ext = check_image(file.filename or "", file.mimetype)

    data = file.read()
    limit = current_app.config.get("MAX_IMAGE_BYTES", 10 * 1024 * 1024)
    if len(data) > limit:
        raise PayloadTooLargeError(f"File too large. Maximum size is {limit // (1024 * 1024)} MB")
    if not data:
        raise InvalidInputError("Uploaded file is empty")

    filename = f"{uuid.uuid4().hex}.{ext}"
    with open(os.path.join(upload_folder(), filename), "wb") as fh:
        fh.write(data)
    return filename, public_url(filename)


def discard_image(filename: str) -> None:
    path = os.path.join(upload_folder(), filename)
    if os.path.exists(path):
        os.remove(path)


def parse_image_request(file: FileStorage | None, image_type) -> ImageType:
    """Checks that need no order: a file part is present and image_type is known."""
    if file is None or not file.filename:
        raise InvalidInputError("No file uploaded")
    if image_type in (None, ""):
        raise InvalidInputError("image_type is required")
    return parse_enum(ImageType, image_type, "image_type")


def attach_image(claims: TokenClaims, order: Order, file: FileStorage, kind: ImageType) -> OrderImage:
    """
    Store the file and record it against the order. The stored file is
    removed again if the database insert fails.
    """
    filename, uri = store_image(file)
    image = OrderImage(
        order_id=order.id,
        image_path=uri,
        image_type=kind,
        uploaded_by=claims.id,
        uploaded_at=utcnow(),
    )
    try:
        db.session.add(image)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        discard_image(filename)
        raise

    current_app.logger.info("Image %s (%s) uploaded to order %s by user %s", image.id, kind.value, order.id, claims.id)
    return image


def parse_signature(signature_data) -> str:
    """Signatures are opaque (typically a data: URL); only emptiness is checked."""
    if not isinstance(signature_data, str) or not signature_data.strip():
        raise InvalidInputError("signature_data is required")
    return signature_data


def attach_signature(order: Order, signature_data: str) -> OrderSignature:
    signature = OrderSignature(
        order_id=order.id,
        signature_data=signature_data,
        signed_at=utcnow(),
    )
    db.session.add(signature)
    db.session.commit()
    return signature
