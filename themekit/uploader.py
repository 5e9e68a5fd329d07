"""Uploading of release files to the public release bucket."""

from __future__ import annotations

import hashlib
import hmac
import io
import json as _json
import re
from datetime import datetime, timezone
from typing import IO, Any, Callable
from urllib.parse import quote, unquote_plus

import requests

REGION = "us-east-1"
BUCKET = "shopify-themekit"
ACL = "public-read"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _encode(obj: Any) -> Any:
    if callable(getattr(obj, "to_json", None)):
        return obj.to_json()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class S3Uploader:
    """Publishes files through an upload function that returns their location."""

    def __init__(self, upload: Callable[[str, IO[Any]], str]):
        self.upload = upload

    def file(self, file_name: str, body: IO[Any]) -> str:
        """Upload a file and return its unescaped URL."""
        print(f"Uploading {file_name}")
        location = self.upload(file_name, body)
        if _BAD_ESCAPE.search(location):
            raise ValueError(f"invalid URL escape in {location!r}")
        print(f"Complete {file_name}")
        return unquote_plus(location)

    def json(self, filename: str, data: Any) -> None:
        """Serialise data as JSON and upload it under filename."""
        encoded = _json.dumps(data, default=_encode, separators=(",", ":")).encode("utf-8")
        self.file(filename, io.BytesIO(encoded))


def _hmac(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def new_s3_uploader(key: str, secret: str) -> S3Uploader:
    """Build an uploader that stores files in the release bucket with signed requests."""

    def upload(filename: str, body: IO[Any]) -> str:
        payload = body.read()
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        now = datetime.now(timezone.utc)
        amz_date, day = now.strftime("%Y%m%dT%H%M%SZ"), now.strftime("%Y%m%d")
        host = f"{BUCKET}.s3.amazonaws.com"
        path = "/" + quote(filename, safe="/~")
        payload_hash = hashlib.sha256(payload).hexdigest()
        headers = {"host": host, "x-amz-acl": ACL, "x-amz-content-sha256": payload_hash, "x-amz-date": amz_date}
        signed = ";".join(sorted(headers))
        canonical = "\n".join(
            ["PUT", path, "", *(f"{k}:{headers[k]}" for k in sorted(headers)), "", signed, payload_hash]
        )
        scope = f"{day}/{REGION}/s3/aws4_request"
        to_sign = "\n".join(["AWS4-HMAC-SHA256", amz_date, scope, hashlib.sha256(canonical.encode()).hexdigest()])
        signing_key = ("AWS4" + secret).encode("utf-8")
        for part in (day, REGION, "s3", "aws4_request"):
            signing_key = _hmac(signing_key, part)
        headers.pop("host")
        headers["Authorization"] = (
            f"AWS4-HMAC-SHA256 Credential={key}/{scope}, SignedHeaders={signed}, "
            f"Signature={_hmac(signing_key, to_sign).hex()}"
        )
        url = f"https://{host}{path}"
        requests.put(url, data=payload, headers=headers, timeout=120).raise_for_status()
        return url

    return S3Uploader(upload)