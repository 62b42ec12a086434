"""Signed slot tokens for student self-marking, and their QR rendering.

Faculty issue a token for one (class, subject, date, slot); it is shown as a
QR code and the student submits it back either as decoded text or as a photo.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import BinaryIO

import qrcode
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from PIL import Image, UnidentifiedImageError

from ..common.datetime_utils import parse_iso_date
from ..core.constants import DEFAULT_SLOT_TOKEN_MAX_AGE_SECONDS
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_SALT = "attendance-slot-token"


@dataclass(frozen=True)
class SlotToken:
    university_id: int
    faculty_id: int
    class_id: int
    subject_id: int
    attendance_date: date
    slot_number: int

    def to_payload(self) -> dict:
        return {
            "u": self.university_id,
            "f": self.faculty_id,
            "c": self.class_id,
            "s": self.subject_id,
            "d": self.attendance_date.strftime("%Y-%m-%d"),
            "n": self.slot_number,
        }

    @classmethod
    def from_payload(cls, data: dict) -> "SlotToken":
        try:
            return cls(
                university_id=int(data["u"]),
                faculty_id=int(data["f"]),
                class_id=int(data["c"]),
                subject_id=int(data["s"]),
                attendance_date=parse_iso_date(data["d"]),
                slot_number=int(data["n"]),
            )
        except (KeyError, TypeError, ValueError):
            raise ValidationError("Invalid QR code")


class SlotTokenCodec:
    def __init__(self, secret_key: str, *, max_age_seconds: int = DEFAULT_SLOT_TOKEN_MAX_AGE_SECONDS):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=_SALT)
        self._max_age = int(max_age_seconds)

    @property
    def max_age_seconds(self) -> int:
        return self._max_age

    def issue(self, token: SlotToken) -> str:
        return self._serializer.dumps(token.to_payload())

    def parse(self, value: str) -> SlotToken:
        if not value or not str(value).strip():
            raise ValidationError("QR code is required")
        try:
            data = self._serializer.loads(str(value).strip(), max_age=self._max_age)
        except SignatureExpired:
            raise ValidationError("QR code has expired")
        except BadSignature:
            raise ValidationError("Invalid QR code")
        if not isinstance(data, dict):
            raise ValidationError("Invalid QR code")
        return SlotToken.from_payload(data)


def render_qr_png(data: str) -> io.BytesIO:
    """PNG bytes of a QR code encoding `data`."""
    img = qrcode.make(data)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def decode_qr_image(stream: BinaryIO) -> str:
    """Text of the first QR code found in an uploaded image."""
    # pyzbar loads the native zbar library on import.
    from pyzbar.pyzbar import decode as zbar_decode

    try:
        with Image.open(stream) as img:
            results = zbar_decode(img.convert("RGB"))
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Uploaded file is not a readable image")

    for r in results:
        if r.type == "QRCODE":
            return r.data.decode("utf-8")

    logger.info("No QR code found in uploaded image")
    raise ValidationError("No QR code found in image")
