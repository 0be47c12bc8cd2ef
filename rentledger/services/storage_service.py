"""
Payment proof storage on a Supabase Storage bucket.
"""
import logging
import uuid
from functools import lru_cache
from pathlib import PurePosixPath

from rentledger.core.config import settings
from rentledger.services.supabase_service import get_supabase_service

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Upload or delete against the storage backend failed"""


def build_proof_path(tenancy_id, filename: str) -> str:
    """tenancies/<tenancy_id>/<random>.<ext>"""
    suffix = PurePosixPath(filename or "").suffix.lower()[:10]
    return f"tenancies/{tenancy_id}/{uuid.uuid4().hex}{suffix}"


class ProofStorage:

    def __init__(self, bucket: str = None):
        self.bucket = bucket or settings.PROOF_BUCKET

    def _bucket(self):
        return get_supabase_service().admin.storage.from_(self.bucket)

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Store the object and return its public URL"""
        try:
            bucket = self._bucket()
            bucket.upload(path, content, {"content-type": content_type})
            url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Proof upload failed for {path}: {e}")
            raise StorageError(str(e)) from e
        logger.info(f"Uploaded proof {path} ({len(content)} bytes)")
        return url

    def remove(self, path: str) -> None:
        try:
            self._bucket().remove([path])
        except Exception as e:
            logger.error(f"Failed to delete proof {path}: {e}")
            raise StorageError(str(e)) from e
        logger.info(f"Deleted proof {path}")


@lru_cache()
def get_proof_storage() -> ProofStorage:
    return ProofStorage()
