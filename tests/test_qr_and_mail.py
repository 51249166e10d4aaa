from __future__ import annotations

import sys
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest
from botocore.exceptions import ClientError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from membership.email_templates import first_name, render_welcome_email
from membership.errors import DependencyError
from membership.mailer import MailgunMailer
from membership.qr import InMemoryQRStorage, S3QRStorage, make_qr_png, qr_object_key


class StubS3:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = []

    def put_object(self, **kwargs):
        if self.fail:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.calls.append(kwargs)
        return {"ETag": '"abc"'}


def test_make_qr_png() -> None:
    png = make_qr_png("ada@example.com")
    assert png.startswith(b"\x89PNG\r\n\x1a\n")


def test_qr_object_key() -> None:
    assert qr_object_key("ada@example.com", "1234") == "ada@example.com-1234.png"
    generated = qr_object_key("ada@example.com")
    assert generated.startswith("ada@example.com-")
    assert generated.endswith(".png")
    assert generated != qr_object_key("ada@example.com")


def test_s3_upload_public_read() -> None:
    client = StubS3()
    storage = S3QRStorage(bucket="datu-membership", client=client)
    url = storage.upload("ada@example.com-1.png", b"png")
    assert url == "https://datu-membership.s3.amazonaws.com/ada%40example.com-1.png"
    call = client.calls[0]
    assert call["Bucket"] == "datu-membership"
    assert call["ACL"] == "public-read"
    assert call["ContentType"] == "image/png"
    assert call["Body"] == b"png"


def test_s3_regional_url() -> None:
    storage = S3QRStorage(bucket="b", client=StubS3(), region="us-west-2")
    assert storage.upload("k.png", b"x") == "https://b.s3.us-west-2.amazonaws.com/k.png"


def test_s3_upload_failure() -> None:
    storage = S3QRStorage(bucket="b", client=StubS3(fail=True))
    with pytest.raises(DependencyError):
        storage.upload("k.png", b"x")


def test_in_memory_storage() -> None:
    storage = InMemoryQRStorage()
    url = storage.upload("k.png", b"x")
    assert url == "memory://qr/k.png"
    assert storage.objects == {"k.png": b"x"}


def _mailgun(handler) -> MailgunMailer:
    return MailgunMailer(
        api_key="key-1",
        domain="mg.example.org",
        from_email="membership@example.org",
        base_url="https://api.mailgun.test",
        transport=httpx.MockTransport(handler),
    )


def test_mailgun_send_and_list_member() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "<1@mg>", "message": "Queued"})

    mailer = _mailgun(handler)
    mailer.send("ada@example.com", "Welcome", "<p>hi</p>")
    mailer.add_list_member("membership@mg.example.org", "ada@example.com")
    mailer.close()

    send, add = seen
    assert send.url.path == "/v3/mg.example.org/messages"
    assert send.headers["Authorization"].startswith("Basic ")
    form = parse_qs(send.content.decode())
    assert form["to"] == ["ada@example.com"]
    assert form["from"] == ["membership@example.org"]
    assert form["html"] == ["<p>hi</p>"]

    assert add.url.path == "/v3/lists/membership@mg.example.org/members"
    add_form = parse_qs(add.content.decode())
    assert add_form["address"] == ["ada@example.com"]
    assert add_form["subscribed"] == ["yes"]


def test_mailgun_error_status() -> None:
    mailer = _mailgun(lambda request: httpx.Response(401, text="Forbidden"))
    with pytest.raises(DependencyError):
        mailer.send("ada@example.com", "Welcome", "<p>hi</p>")


def test_mailgun_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    mailer = _mailgun(handler)
    with pytest.raises(DependencyError):
        mailer.add_list_member("list@mg", "ada@example.com")


def test_first_name() -> None:
    assert first_name("Ada Lovelace") == "Ada"
    assert first_name("  Grace   Hopper ") == "Grace"
    assert first_name("Cher") == "Cher"
    assert first_name("") == ""


def test_render_welcome_email() -> None:
    html = render_welcome_email("Ada", "https://b.s3.amazonaws.com/q.png", subject="Welcome")
    assert "Hi Ada," in html
    assert 'src="https://b.s3.amazonaws.com/q.png"' in html
    assert "<title>Welcome</title>" in html


def test_render_welcome_email_escapes_name() -> None:
    html = render_welcome_email("<b>Ada</b>", "https://x/q.png")
    assert "<b>Ada</b>" not in html
    assert "&lt;b&gt;Ada&lt;/b&gt;" in html
