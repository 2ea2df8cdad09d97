"""
Audio Store.

Turns audio payloads returned by the API into local references that stay
valid across restarts:

    {state_dir}/
        audio/
            3f9a...c1.mp3
            b07e...42.mp3

A reference is the path relative to the state directory, e.g.
``audio/3f9a...c1.mp3``. History entries store references, so a clip saved
in one session can still be played in the next.

Keys are SHA-256 hashes over everything that determines the clip (voice,
voice settings, chunk text and the payload itself). Two variants of the
same chunk differ in their payloads, so they get different keys.

Alongside the files the store keeps an in-memory map of the references
created in this process. The pipeline fills it and reset empties it; nothing
reads clips back from it.
"""
from __future__ import annotations

import hashlib
import re
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from voiceover.core.config import Defaults
from voiceover.core.logging import debug, get_logger, info, warn
from voiceover.utils.timeit import timeit

_LOG = get_logger("voiceover.audio")

AUDIO_SUFFIX = ".mp3"

_KEY_RE = re.compile(r"^[0-9a-f]{64}$")


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def make_key(
    text: str,
    voice_id: str,
    payload: bytes,
    stability: float = Defaults.VOICE_STABILITY,
    similarity_boost: float = Defaults.VOICE_SIMILARITY_BOOST,
) -> str:
    """
    Deterministic key for one generated clip.

    The payload is hashed separately so the key computation stays cheap for
    large clips.
    """
    h = hashlib.sha256()
    h.update((voice_id or "").encode("utf-8"))
    h.update(b"|")
    h.update(f"{float(stability):.4f}".encode("ascii"))
    h.update(b"|")
    h.update(f"{float(similarity_boost):.4f}".encode("ascii"))
    h.update(b"|")
    h.update(text.encode("utf-8"))
    h.update(b"|")
    h.update(hash_bytes(payload).encode("ascii"))
    return h.hexdigest()


def is_valid_key(key: str) -> bool:
    return bool(_KEY_RE.match(key or ""))


def key_from_reference(reference: str) -> Optional[str]:
    """``audio/<key>.mp3`` -> ``<key>``; None for anything else."""
    name = Path(reference).name
    if not name.endswith(AUDIO_SUFFIX):
        return None
    key = name[: -len(AUDIO_SUFFIX)]
    return key if is_valid_key(key) else None


class AudioStore:
    """
    Disk-backed store for generated clips plus the session's cache map.

    Args:
        state_dir: Directory references are relative to.
        audio_subdir: Subdirectory of ``state_dir`` holding the clips.
    """

    def __init__(self, state_dir: str | Path, audio_subdir: str = Defaults.STORAGE_AUDIO_SUBDIR):
        self._state_dir = Path(state_dir)
        self._audio_subdir = audio_subdir
        self._cache: Dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def audio_dir(self) -> Path:
        return self._state_dir / self._audio_subdir

    def _path_for(self, key: str) -> Path:
        return self.audio_dir / f"{key}{AUDIO_SUFFIX}"

    def reference_for(self, key: str) -> str:
        return f"{self._audio_subdir}/{key}{AUDIO_SUFFIX}"

    def materialize(
        self,
        payload: bytes,
        text: str,
        voice_id: str,
        stability: float = Defaults.VOICE_STABILITY,
        similarity_boost: float = Defaults.VOICE_SIMILARITY_BOOST,
    ) -> str:
        """
        Write ``payload`` to disk and return its reference.

        The write is atomic (temp file, then rename). Unlike a cache write,
        a failure here raises: the caller reports it as a failed variant.

        Raises:
            OSError: If the clip cannot be written.
        """
        key = make_key(text, voice_id, payload, stability, similarity_boost)
        path = self._path_for(key)

        with timeit("audio_write") as t:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            try:
                tmp.write_bytes(payload)
                tmp.replace(path)
            except OSError:
                if tmp.exists():
                    tmp.unlink()
                raise

        reference = self.reference_for(key)
        with self._lock:
            self._cache[key] = reference

        debug(_LOG, "audio_saved", key=key[:8], bytes=len(payload), seconds=round(t.seconds, 4))
        return reference

    def resolve(self, key: str) -> Optional[Path]:
        """Path of the clip for ``key``, or None if it is unknown or gone."""
        if not is_valid_key(key):
            return None
        path = self._path_for(key)
        return path if path.is_file() else None

    def load(self, key: str) -> Optional[bytes]:
        path = self.resolve(key)
        if path is None:
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            warn(_LOG, "audio_read_error", key=key[:8], error=str(e))
            return None

    def cached_references(self) -> Dict[str, str]:
        """References created in this process, by key."""
        with self._lock:
            return dict(self._cache)

    def clear(self) -> int:
        """
        Drop every clip on disk and empty the cache map.

        Returns:
            Number of files removed.
        """
        with self._lock:
            self._cache.clear()

        removed = 0
        if self.audio_dir.exists():
            for clip in self.audio_dir.glob(f"*{AUDIO_SUFFIX}"):
                try:
                    clip.unlink()
                    removed += 1
                except OSError as e:
                    warn(_LOG, "audio_delete_error", file=clip.name, error=str(e))

        info(_LOG, "audio_cleared", files_removed=removed)
        return removed

    def get_storage_info(self) -> Dict[str, Any]:
        """File count and total size of the stored clips."""
        if not self.audio_dir.exists():
            return {"file_count": 0, "total_bytes": 0, "cached": len(self._cache)}

        file_count = 0
        total_bytes = 0
        for clip in self.audio_dir.glob(f"*{AUDIO_SUFFIX}"):
            try:
                total_bytes += clip.stat().st_size
                file_count += 1
            except OSError:
                continue

        return {"file_count": file_count, "total_bytes": total_bytes, "cached": len(self._cache)}
