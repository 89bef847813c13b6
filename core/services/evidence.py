from __future__ import annotations

import os
from dataclasses import dataclass

from django.conf import settings
from django.core.files.storage import Storage, default_storage
from django.utils import timezone
from django.utils.text import get_valid_filename

from ..exceptions import InvalidRequest


@dataclass(frozen=True)
class EvidenceUpload:
    """A proof-of-payment (or refund) as handed to the booking services."""

    image: object | None = None
    reference_code: str = ""

    def validate(self) -> None:
        if self.image is None:
            raise InvalidRequest("An evidence image is required.")


class EvidenceStorage:
    """Stores uploaded evidence files and hands back an opaque reference."""

    def __init__(self, storage: Storage | None = None, upload_dir: str | None = None):
        self.storage = storage or default_storage
        self.upload_dir = upload_dir or getattr(settings, "EVIDENCE_UPLOAD_DIR", "evidence")

    def _name_for(self, file) -> str:
        original = os.path.basename(getattr(file, "name", "") or "file")
        stamp = timezone.now().strftime("%Y%m%d%H%M%S%f")
        return f"{self.upload_dir}/{stamp}_{get_valid_filename(original)}"

    def store(self, file) -> str:
        saved_name = self.storage.save(self._name_for(file), file)
        return self.storage.url(saved_name)
