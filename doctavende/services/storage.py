from __future__ import annotations

import logging
import uuid
from typing import Optional

from doctavende.core.config import settings
from doctavende.db.gateway import RemoteGateway
from doctavende.services.imaging import UploadCandidate

logger = logging.getLogger(__name__)


def business_flyer_prefix(owner_id: str) -> str:
    return owner_id


def promotion_flyer_prefix(business_id: str) -> str:
    return f"promos/{business_id}"


class FlyerStorage:
    """Uploads flyers to the public bucket and hands back their public URL."""

    def __init__(self, gateway: RemoteGateway, bucket: Optional[str] = None) -> None:
        self._gateway = gateway
        self._bucket = bucket or settings.STORAGE_BUCKET

    def object_path(self, prefix: str, extension: str) -> str:
        return f"{prefix}/{uuid.uuid4().hex}.{extension}"

    def store(self, candidate: UploadCandidate, prefix: str) -> str:
        path = self.object_path(prefix, candidate.extension)
        self._gateway.upload(self._bucket, path, candidate.data, candidate.content_type)
        # TODO: borrar el objeto si luego falla el insert/update de la fila
        return self._gateway.get_public_url(self._bucket, path)
