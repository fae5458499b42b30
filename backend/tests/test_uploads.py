"""
Upload tests: order images (type and size checks, storage, serving) and
signatures.
"""

import io
import os

import pytest

from delivery.extensions import db
from delivery.models import OrderImage


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _image_form(data=PNG_BYTES, filename="photo.png", mimetype="image/png", image_type="before_send"):
    form = {"image": (io.BytesIO(data), filename, mimetype)}
    if image_type is not None:
        form["image_type"] = image_type
    return form


class TestOrderImages:

    def test_upload_stores_file_and_row(self, app, client, admin_headers, make_order):
        order = make_order()
        resp = client.post(
            f"/api/upload/order-image/{order['id']}",
            data=_image_form(),
            headers=admin_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 200
        image = resp.json["image"]
        assert image["image_type"] == "before_send"
        assert resp.json["image_path"].startswith("http://testserver/uploads/")
        assert resp.json["image_path"].endswith(".png")

        stored_name = resp.json["image_path"].rsplit("/", 1)[1]
        assert os.path.exists(os.path.join(app.config["UPLOAD_FOLDER"], stored_name))

        served = client.get(f"/uploads/{stored_name}")
        assert served.status_code == 200
        assert served.data == PNG_BYTES

        full = client.get(f"/api/orders/{order['id']}", headers=admin_headers).json
        assert [i["id"] for i in full["images"]] == [resp.json["id"]]

    @pytest.mark.parametrize("filename", ["صورة.jpg", "фото.PNG", "写真.gif"])
    def test_non_ascii_filename_accepted(self, app, client, admin_headers, make_order, filename):
        order = make_order()
        resp = client.post(
            f"/api/upload/order-image/{order['id']}",
            data=_image_form(filename=filename, mimetype="image/jpeg"),
            headers=admin_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 200, resp.json
        expected_ext = filename.rsplit(".", 1)[1].lower()
        stored_name = resp.json["image_path"].rsplit("/", 1)[1]
        assert stored_name.endswith(f".{expected_ext}")
        assert stored_name.isascii()
        assert os.path.exists(os.path.join(app.config["UPLOAD_FOLDER"], stored_name))

    def test_courier_uploads_to_own_order(self, client, make_order, courier, courier_headers):
        order = make_order(assigned_to=courier.id)
        resp = client.post(
            f"/api/upload/order-image/{order['id']}",
            data=_image_form(filename="door.jpg", mimetype="image/jpeg", image_type="after_receive"),
            headers=courier_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        assert resp.json["image"]["uploaded_by"] == courier.id

    def test_courier_cannot_upload_to_other_order(self, client, make_order, other_courier, courier_headers):
        order = make_order(assigned_to=other_courier.id)
        resp = client.post(
            f"/api/upload/order-image/{order['id']}",
            data=_image_form(),
            headers=courier_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 403
        assert db.session.query(OrderImage).count() == 0

    @pytest.mark.parametrize(
        "filename,mimetype",
        [
            ("notes.txt", "text/plain"),
            ("photo.png", "application/pdf"),
            ("photo.pdf", "image/png"),
        ],
    )
    def test_non_image_rejected_415(self, client, admin_headers, make_order, filename, mimetype):
        order = make_order()
        resp = client.post(
            f"/api/upload/order-image/{order['id']}",
            data=_image_form(filename=filename, mimetype=mimetype),
            headers=admin_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 415

    def test_oversize_rejected_413(self, app, client, admin_headers, make_order):
        order = make_order()
        too_big = b"\x00" * (app.config["MAX_IMAGE_BYTES"] + 1)
        resp = client.post(
            f"/api/upload/order-image/{order['id']}",
            data=_image_form(data=too_big),
            headers=admin_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 413
        folder = app.config["UPLOAD_FOLDER"]
        assert not os.path.isdir(folder) or os.listdir(folder) == []
        assert db.session.query(OrderImage).count() == 0

    def test_missing_file_400(self, client, admin_headers, make_order):
        order = make_order()
        resp = client.post(
            f"/api/upload/order-image/{order['id']}",
            data={"image_type": "before_send"},
            headers=admin_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    @pytest.mark.parametrize("image_type", [None, "", "selfie"])
    def test_bad_image_type_400(self, client, admin_headers, make_order, image_type):
        order = make_order()
        resp = client.post(
            f"/api/upload/order-image/{order['id']}",
            data=_image_form(image_type=image_type),
            headers=admin_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_missing_order_404(self, client, admin_headers):
        resp = client.post(
            "/api/upload/order-image/777",
            data=_image_form(),
            headers=admin_headers,
            content_type="multipart/form-data",
        )
        assert resp.status_code == 404


class TestSignatures:

    def test_latest_signature_wins(self, client, admin_headers, make_order, courier, courier_headers):
        order = make_order(assigned_to=courier.id)

        first = client.post(
            f"/api/upload/signature/{order['id']}",
            json={"signature_data": "data:image/png;base64,AAAA"},
            headers=courier_headers,
        )
        second = client.post(
            f"/api/upload/signature/{order['id']}",
            json={"signature_data": "data:image/png;base64,BBBB"},
            headers=courier_headers,
        )
        assert first.status_code == 200
        assert second.status_code == 200

        full = client.get(f"/api/orders/{order['id']}", headers=admin_headers).json
        assert full["signature"]["id"] == second.json["id"]
        assert full["signature"]["signature_data"] == "data:image/png;base64,BBBB"

    @pytest.mark.parametrize("body", [{}, {"signature_data": ""}, {"signature_data": "   "}, {"signature_data": 5}])
    def test_empty_signature_rejected(self, client, admin_headers, make_order, body):
        order = make_order()
        resp = client.post(f"/api/upload/signature/{order['id']}", json=body, headers=admin_headers)
        assert resp.status_code == 400

    def test_signature_missing_order(self, client, admin_headers):
        resp = client.post(
            "/api/upload/signature/555",
            json={"signature_data": "data:image/png;base64,AAAA"},
            headers=admin_headers,
        )
        assert resp.status_code == 404
