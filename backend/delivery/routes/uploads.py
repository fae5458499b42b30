# Overview: Flask API routes for order images and signatures; parses input and returns JSON responses.

# backend/delivery/routes/uploads.py
"""
Upload routes.

- Images: multipart form with file part "image" and field "image_type"
  (before_send | after_receive | device_condition); jpeg/png/gif only, 10 MB max
- Signatures: JSON {"signature_data": "..."}
- Stored images are served back from /uploads/<filename>

Couriers may only upload against orders assigned to them.
"""

from flask import Blueprint, request, jsonify, g, current_app, send_from_directory
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import DeliveryError
from ..services import order_service, upload_service
from ..decorators import require_auth


uploads_bp = Blueprint("uploads", __name__, url_prefix="/api/upload")
files_bp = Blueprint("files", __name__)


def _storage_failure(message: str):
    db.session.rollback()
    current_app.logger.exception(message)
    return jsonify({"error": "Database error"}), 500


@uploads_bp.post("/order-image/<int:order_id>")
@require_auth
def upload_order_image_route(order_id: int):
    """
    Returns:
        200: {"id", "image_path", "image", "message"}
        400: no file / bad image_type
        413: file larger than 10 MB
        415: not an image
    """
    try:
        file = request.files.get("image")
        kind = upload_service.parse_image_request(file, request.form.get("image_type"))
        order = order_service.get_order_for(
            g.current_user, order_id, "You do not have permission to upload images for this order"
        )
        image = upload_service.attach_image(g.current_user, order, file, kind)
        return jsonify({
            "id": image.id,
            "image_path": image.image_path,
            "image": image.to_dict(),
            "message": "Image uploaded successfully",
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to save order image")


@uploads_bp.post("/signature/<int:order_id>")
@require_auth
def upload_signature_route(order_id: int):
    """Request body: {"signature_data": "data:image/png;base64,..."}"""
    try:
        data = request.get_json(silent=True) or {}
        signature_data = upload_service.parse_signature(data.get("signature_data"))
        order = order_service.get_order_for(
            g.current_user, order_id, "You do not have permission to add a signature to this order"
        )
        signature = upload_service.attach_signature(order, signature_data)
        return jsonify({
            "id": signature.id,
            "signature": signature.to_dict(),
            "message": "Signature saved successfully",
        }), 200

    except DeliveryError as e:
        return jsonify({"error": e.message}), e.status_code
    except SQLAlchemyError:
        return _storage_failure("Failed to save signature")


@files_bp.get("/uploads/<path:filename>")
def serve_upload_route(filename: str):
    return send_from_directory(upload_service.upload_folder(), filename)
