from __future__ import annotations

import io
import uuid
from typing import Dict, Optional
from urllib.parse import quote

import boto3
import qrcode
from botocore.exceptions import BotoCoreError, ClientError

from .errors import DependencyError


def make_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def qr_object_key(email: str, image_id: Optional[str] = None) -> str:
    # uuid1 keeps keys roughly time ordered within the bucket
    return f"{email}-{image_id or uuid.uuid1()}.png"


class QRStorage:
    def upload(self, key: str, body: bytes) -> str:  # pragma: no cover - interface
        """Store a PNG and return its public URL."""
        raise NotImplementedError


class S3QRStorage(QRStorage):
    def __init__(self, bucket: str, client=None, region: Optional[str] = None) -> None:
        self.bucket = bucket
        self.region = region
        self.client = client or boto3.client("s3", region_name=region)

    def public_url(self, key: str) -> str:
        if self.region and self.region != "us-east-1":
            return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"
        return f"https://{self.bucket}.s3.amazonaws.com/{quote(key)}"

    def upload(self, key: str, body: bytes) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ACL="public-read",
                ContentType="image/png",
            )
        except (BotoCoreError, ClientError) as exc:
            raise DependencyError(f"S3 upload failed for {key}: {exc}") from exc
        return self.public_url(key)


class InMemoryQRStorage(QRStorage):
    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.fail = False

    def upload(self, key: str, body: bytes) -> str:
        if self.fail:
            raise DependencyError("In-memory storage configured to fail")
        self.objects[key] = body
        return f"memory://qr/{quote(key)}"
