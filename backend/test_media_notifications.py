"""
backend/test_media_notifications.py

Cloudinary uploader and SendGrid notifier against a mocked requests session.

Run:
    pytest backend/test_media_notifications.py -v
"""

import hashlib
from unittest.mock import MagicMock

import pytest
import requests

from backend.config import Settings
from backend.errors import ConfigError, UpstreamError
from backend.media import CloudinaryUploader, build_media_uploader, sign_params
from backend.models import LeadContact
from backend.notifications import SENDGRID_SEND_URL, SendGridNotifier, build_notifier, render_new_lead_email


def fake_response(status_code=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    resp.text = text
    return resp


# ---------------------------------------------------------
# Cloudinary
# ---------------------------------------------------------
def test_sign_params_matches_cloudinary_scheme():
    params = {"timestamp": "1700000000", "folder": "realestate/abc"}
    expected = hashlib.sha1(b"folder=realestate/abc&timestamp=1700000000" + b"topsecret").hexdigest()
    assert sign_params(params, "topsecret") == expected


def test_upload_posts_signed_request():
    session = MagicMock()
    session.post.return_value = fake_response(payload={
        "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/realestate/l1/x.jpg",
        "public_id": "realestate/l1/x",
    })
    uploader = CloudinaryUploader("demo", "key123", "secret", session=session)

    asset = uploader.upload(b"bytes", folder="l1", filename="x.jpg", content_type="image/jpeg")

    assert asset.external_id == "realestate/l1/x"
    assert asset.url.startswith("https://")
    url = session.post.call_args.args[0]
    kwargs = session.post.call_args.kwargs
    assert url == "https://api.cloudinary.com/v1_1/demo/image/upload"
    assert kwargs["data"]["folder"] == "realestate/l1"
    assert kwargs["data"]["api_key"] == "key123"
    assert "secret" not in kwargs["data"].values()
    assert len(kwargs["data"]["signature"]) == 40
    assert kwargs["files"]["file"] == ("x.jpg", b"bytes", "image/jpeg")


@pytest.mark.parametrize(
    "response",
    [
        fake_response(status_code=401, text="bad key"),
        fake_response(payload={"public_id": "no-url"}),
    ],
)
def test_upload_failures_raise_upstream_error(response):
    session = MagicMock()
    session.post.return_value = response
    with pytest.raises(UpstreamError):
        CloudinaryUploader("demo", "k", "s", session=session).upload(b"x", "f", "x.jpg", "image/jpeg")


def test_upload_network_error_raises_upstream_error():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("down")
    with pytest.raises(UpstreamError):
        CloudinaryUploader("demo", "k", "s", session=session).upload(b"x", "f", "x.jpg", "image/jpeg")


def test_delete_requires_ok_result():
    session = MagicMock()
    session.post.return_value = fake_response(payload={"result": "ok"})
    uploader = CloudinaryUploader("demo", "k", "s", session=session)
    uploader.delete("realestate/l1/x")
    assert session.post.call_args.kwargs["data"]["public_id"] == "realestate/l1/x"

    session.post.return_value = fake_response(payload={"result": "not found"})
    with pytest.raises(UpstreamError):
        uploader.delete("realestate/l1/x")


def html_response(status_code=200):
    resp = fake_response(status_code=status_code, text="<html>gateway</html>")
    resp.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
    return resp


def test_non_json_upload_response_raises_upstream_error():
    session = MagicMock()
    session.post.return_value = html_response()
    with pytest.raises(UpstreamError):
        CloudinaryUploader("demo", "k", "s", session=session).upload(b"x", "f", "x.jpg", "image/jpeg")


def test_non_json_delete_response_raises_upstream_error():
    session = MagicMock()
    session.post.return_value = html_response()
    with pytest.raises(UpstreamError):
        CloudinaryUploader("demo", "k", "s", session=session).delete("realestate/l1/x")


def test_delete_ignores_empty_id():
    session = MagicMock()
    CloudinaryUploader("demo", "k", "s", session=session).delete("")
    session.post.assert_not_called()


def test_build_media_uploader_requires_credentials():
    with pytest.raises(ConfigError):
        build_media_uploader(Settings(jwt_secret="x", cloudinary_cloud_name="demo"))
    uploader = build_media_uploader(Settings(
        jwt_secret="x", cloudinary_cloud_name="demo", cloudinary_api_key="k", cloudinary_api_secret="s",
    ))
    assert uploader.cloud_name == "demo"


# ---------------------------------------------------------
# SendGrid
# ---------------------------------------------------------
LEAD = LeadContact(name="Bob <script>", email="bob@example.com", phone=None, message="Hi & hello")


def test_render_new_lead_email():
    subject, text, html_body = render_new_lead_email("Lake House", LEAD)
    assert subject == "NEW LEAD: Inquiry for listing: Lake House"
    assert "Phone: N/A" in text
    assert "Bob <script>" in text
    assert "<script>" not in html_body
    assert "Bob &lt;script&gt;" in html_body
    assert "Hi &amp; hello" in html_body


def test_notifier_posts_to_sendgrid():
    session = MagicMock()
    session.post.return_value = fake_response(status_code=202)
    notifier = SendGridNotifier("SG.key", "noreply@realestate-app.com", session=session)

    notifier.notify_new_lead("agent@example.com", "Lake House", LEAD)

    assert session.post.call_args.args[0] == SENDGRID_SEND_URL
    kwargs = session.post.call_args.kwargs
    assert kwargs["headers"]["Authorization"] == "Bearer SG.key"
    message = kwargs["json"]
    assert message["personalizations"][0]["to"] == [{"email": "agent@example.com"}]
    assert message["from"] == {"email": "noreply@realestate-app.com"}
    assert message["subject"] == "NEW LEAD: Inquiry for listing: Lake House"
    assert [c["type"] for c in message["content"]] == ["text/plain", "text/html"]


def test_notifier_without_key_fails_without_calling_out():
    session = MagicMock()
    notifier = build_notifier(Settings(jwt_secret="x"))
    notifier.session = session
    with pytest.raises(UpstreamError) as exc:
        notifier.notify_new_lead("agent@example.com", "Lake House", LEAD)
    assert exc.value.message == "Email service is not configured."
    session.post.assert_not_called()


@pytest.mark.parametrize("status_code", [400, 401, 500])
def test_notifier_error_status_raises(status_code):
    session = MagicMock()
    session.post.return_value = fake_response(status_code=status_code, text="nope")
    with pytest.raises(UpstreamError):
        SendGridNotifier("SG.key", "from@example.com", session=session).notify_new_lead("a@example.com", "T", LEAD)
