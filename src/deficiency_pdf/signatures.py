"""Image lookup collaborators and the signature preloading pass."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from .models import Entry

logger = logging.getLogger(__name__)

S3_PREFIX = "s3://"

# signer id -> image bytes; read-only once built
SignatureCache = Mapping[str, bytes]


class ImageStore(Protocol):
    """Fetches image bytes by content key, or None when absent."""

    def fetch(self, key: str) -> Optional[bytes]:
        ...


class MemoryImageStore:
    """Image store backed by a dict, for in-process use and tests."""

    def __init__(self, images: Optional[Dict[str, bytes]] = None):
        self.images = dict(images or {})

    def fetch(self, key: str) -> Optional[bytes]:
        return self.images.get(key)


class LocalImageStore:
    """
    Resolves image keys against a local upload directory.

    Keys look like "/uploads/signatures/a.png" or "uploads/signatures/a.png".
    Object storage keys ("s3://...") are not reachable from here and are
    reported as absent.
    """

    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    def resolve(self, key: str) -> Optional[Path]:
        if not key:
            return None
        if key.startswith(S3_PREFIX):
            logger.warning("Object storage key %s is not available locally, skipping", key)
            return None
        path = (self.root / key.lstrip("/")).resolve()
        if self.root not in path.parents:
            logger.warning("Image key %s escapes %s, skipping", key, self.root)
            return None
        return path

    def fetch(self, key: str) -> Optional[bytes]:
        path = self.resolve(key)
        if path is None or not path.is_file():
            return None
        return path.read_bytes()


def unique_signers(entries: Iterable[Entry]) -> List[Tuple[str, str]]:
    """(signer id, signature key) pairs, first occurrence wins."""
    seen: Dict[str, str] = {}
    for entry in entries:
        signer = entry.signer
        if signer is None or not signer.signature_ref:
            continue
        if signer.id not in seen:
            seen[signer.id] = signer.signature_ref
    return list(seen.items())


class SignatureResolver:
    """Preloads signature images for every signer in a report."""

    def __init__(self, store: ImageStore, max_workers: int = 4):
        self.store = store
        self.max_workers = max_workers

    def _fetch(self, signer_id: str, key: str) -> Optional[bytes]:
        try:
            data = self.store.fetch(key)
        except Exception as exc:
            logger.warning("Failed to load signature for user %s: %s", signer_id, exc)
            return None
        if not data:
            logger.info("No signature image for user %s at %s", signer_id, key)
            return None
        return data

    def preload(self, entries: Iterable[Entry]) -> SignatureCache:
        """
        Fetch every unique signer's image before layout starts.

        Fetches run concurrently and are all joined before returning.
        Failures leave the signer out of the cache; this never raises.
        """
        signers = unique_signers(entries)
        cache: Dict[str, bytes] = {}
        if not signers:
            return MappingProxyType(cache)

        workers = min(self.max_workers, len(signers))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = pool.map(lambda s: (s[0], self._fetch(*s)), signers)
            for signer_id, data in results:
                if data is not None:
                    cache[signer_id] = data

        logger.debug("Loaded %d of %d signature images", len(cache), len(signers))
        return MappingProxyType(cache)
