"""Avatar URL derivation and uploaded avatar processing."""

import asyncio
import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlencode

from PIL import Image

logger = logging.getLogger(__name__)

AVATAR_SIZE = (250, 250)
AVATAR_URL_PREFIX = "/avatars"


def gravatar_url(email: str, size: int = 200, rating: str = "pg", default: str = "mm") -> str:
    """Build the gravatar URL for an email address."""
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    query = urlencode({"s": size, "r": rating, "d": default})
    return f"https://www.gravatar.com/avatar/{digest}?{query}"


class AvatarService:
    """Resizes uploaded avatars and publishes them under the avatars directory."""

    def __init__(self, avatars_dir: Path, tmp_dir: Path):
        self.avatars_dir = Path(avatars_dir)
        self.tmp_dir = Path(tmp_dir)
        self.avatars_dir.mkdir(parents=True, exist_ok=True)
        self.tmp_dir.mkdir(parents=True, exist_ok=True)

    async def store(self, user_id: int, original_filename: str, source: BinaryIO) -> str:
        """
        Resize an uploaded image and move it into the public avatars directory.

        Args:
            user_id: Owner of the avatar, used as the file stem
            original_filename: Client filename, only its extension is kept
            source: Readable binary stream with the uploaded image

        Returns:
            Public avatar URL
        """
        extension = os.path.splitext(original_filename or "")[1]
        filename = f"{user_id}{extension}"
        await asyncio.to_thread(self._resize_and_publish, source, user_id, filename)
        logger.info("Stored avatar %s for user %s", filename, user_id)
        return f"{AVATAR_URL_PREFIX}/{filename}"

    def _resize_and_publish(self, source: BinaryIO, user_id: int, filename: str) -> None:
        extension = os.path.splitext(filename)[1]
        with tempfile.NamedTemporaryFile(
            dir=self.tmp_dir, prefix=f"{user_id}-", suffix=extension, delete=False
        ) as tmp:
            tmp_path = Path(tmp.name)

        try:
            with Image.open(source) as image:
                resized = image.resize(AVATAR_SIZE)
                if extension.lower() in (".jpg", ".jpeg") and resized.mode not in ("RGB", "L"):
                    resized = resized.convert("RGB")
                resized.save(tmp_path)
            os.replace(tmp_path, self.avatars_dir / filename)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

        # Previous upload with another extension
        for stale in self.avatars_dir.glob(f"{user_id}.*"):
            if stale.name != filename:
                stale.unlink(missing_ok=True)
