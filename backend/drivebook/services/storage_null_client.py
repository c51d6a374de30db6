"""In-memory stand-in for R2 when no bucket is configured."""

from typing import Dict, Optional, Tuple


class NullStorageClient:
    """Keeps objects in a dict so local runs and tests can read them back."""

    backend_name = "null"

    def __init__(self) -> None:
        # key -> (bytes, content type)
        self.objects: Dict[str, Tuple[bytes, str]] = {}

    def upload_bytes(
        self, object_key: str, data: bytes, content_type: str
    ) -> Tuple[bool, Optional[int]]:
        self.objects[object_key] = (data, content_type)
        return True, None

    def delete_object(self, object_key: str) -> bool:
        self.objects.pop(object_key, None)
        return True
