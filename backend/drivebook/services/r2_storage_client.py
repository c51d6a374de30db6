"""
Cloudflare R2 client for stored documents.

R2 speaks the S3 API. Requests are authorised with SigV4 query-string
signatures over an unsigned payload and sent with ``requests``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import hashlib
import hmac
import logging
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import requests

from ..core.config import Settings, settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30
SIGNING_ALGORITHM = "AWS4-HMAC-SHA256"
SIGNING_REGION = "auto"
SIGNING_SERVICE = "s3"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"

_UNRESERVED = "-_.~"


def _sign(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def _derive_signing_key(secret: str, datestamp: str) -> bytes:
    key = ("AWS4" + secret).encode("utf-8")
    for part in (datestamp, SIGNING_REGION, SIGNING_SERVICE, "aws4_request"):
        key = _sign(key, part)
    return key


def _encode_query(params: Dict[str, str]) -> str:
    return "&".join(
        f"{quote(name, safe=_UNRESERVED)}={quote(params[name], safe=_UNRESERVED)}"
        for name in sorted(params)
    )


@dataclass
class PresignedUrl:
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    expires_at: str = ""


class R2StorageClient:
    """One bucket, two verbs: PUT an object and DELETE it."""

    backend_name = "r2"

    def __init__(
        self,
        account_id: str,
        access_key_id: str,
        secret_access_key: str,
        bucket_name: str,
    ) -> None:
        if not all((account_id, access_key_id, secret_access_key, bucket_name)):
            raise RuntimeError("R2 configuration is missing; check r2_* settings")
        self.access_key_id = access_key_id
        self._secret = secret_access_key
        self.bucket_name = bucket_name
        self.host = f"{account_id}.r2.cloudflarestorage.com"

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "R2StorageClient":
        config = config or settings
        return cls(
            account_id=config.r2_account_id,
            access_key_id=config.r2_access_key_id,
            secret_access_key=config.r2_secret_access_key.get_secret_value(),
            bucket_name=config.r2_bucket_name,
        )

    def presign(
        self,
        method: str,
        object_key: str,
        expires_seconds: int = 300,
        content_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PresignedUrl:
        """Signed URL for ``method`` on ``object_key``, valid ``expires_seconds``."""
        now = now or datetime.now(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        datestamp = amz_date[:8]
        scope = f"{datestamp}/{SIGNING_REGION}/{SIGNING_SERVICE}/aws4_request"
        path = f"/{self.bucket_name}/{quote(object_key, safe='/' + _UNRESERVED)}"

        params = {
            "X-Amz-Algorithm": SIGNING_ALGORITHM,
            "X-Amz-Credential": f"{self.access_key_id}/{scope}",
            "X-Amz-Date": amz_date,
            "X-Amz-Expires": str(expires_seconds),
            "X-Amz-SignedHeaders": "host",
            "X-Amz-Content-Sha256": UNSIGNED_PAYLOAD,
        }
        if content_type:
            params["content-type"] = content_type
        query = _encode_query(params)

        canonical_request = (
            f"{method.upper()}\n{path}\n{query}\nhost:{self.host}\n\nhost\n{UNSIGNED_PAYLOAD}"
        )
        string_to_sign = "\n".join(
            (
                SIGNING_ALGORITHM,
                amz_date,
                scope,
                hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
            )
        )
        signature = hmac.new(
            _derive_signing_key(self._secret, datestamp),
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

        return PresignedUrl(
            url=f"https://{self.host}{path}?{query}&X-Amz-Signature={signature}",
            headers={"Content-Type": content_type} if content_type else {},
            expires_at=now.replace(microsecond=0).isoformat(),
        )

    def upload_bytes(
        self, object_key: str, data: bytes, content_type: str
    ) -> Tuple[bool, Optional[int]]:
        """PUT ``data``; returns (ok, http_status), status None on network failure."""
        signed = self.presign("PUT", object_key, content_type=content_type)
        try:
            resp = requests.put(
                signed.url, data=data, headers=signed.headers, timeout=REQUEST_TIMEOUT_SECONDS
            )
        except requests.RequestException as e:
            logger.error("R2 upload of %s failed: %s", object_key, e)
            return False, None
        ok = 200 <= resp.status_code < 300
        if not ok:
            logger.warning("R2 upload of %s returned %s", object_key, resp.status_code)
        return ok, resp.status_code

    def delete_object(self, object_key: str) -> bool:
        """A missing object counts as deleted."""
        signed = self.presign("DELETE", object_key)
        try:
            resp = requests.delete(signed.url, timeout=REQUEST_TIMEOUT_SECONDS)
        except requests.RequestException as e:
            logger.error("R2 delete of %s failed: %s", object_key, e)
            return False
        return resp.status_code == 404 or 200 <= resp.status_code < 300
