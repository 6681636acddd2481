"""Object download service with resumable HTTP transfers."""

from pathlib import Path
from typing import Optional
import logging

import httpx
import aiofiles

from updateagent.models.metadata import ObjectMetadata, UpdateMetadata
from updateagent.models.settings import AgentSettings


class DownloadService:
    """Fetches update objects into the download directory."""

    def __init__(self, settings: Optional[AgentSettings] = None):
        """Initialize download service.

        Args:
            settings: Agent settings (defaults if None)
        """
        self.logger = logging.getLogger("updateagent.download")
        self.settings = settings or AgentSettings()
        self.download_dir = Path(self.settings.download_dir)
        self.chunk_size = 64 * 1024

    def object_url(self, metadata: UpdateMetadata, obj: ObjectMetadata) -> str:
        base = self.settings.server_address.rstrip("/")
        return (
            f"{base}/products/{metadata.product_uid}"
            f"/packages/{metadata.version}/objects/{obj.sha256sum}"
        )

    async def download_object(self, metadata: UpdateMetadata, obj: ObjectMetadata) -> Path:
        """Download one object, resuming a partial file if present.

        Args:
            metadata: Package the object belongs to
            obj: Object to fetch

        Returns:
            Path to the downloaded object (named after its sha256sum)

        Raises:
            httpx.HTTPError: If the transfer fails
        """
        self.download_dir.mkdir(parents=True, exist_ok=True)
        target_path = self.download_dir / obj.sha256sum

        bytes_downloaded = 0
        if target_path.exists():
            bytes_downloaded = target_path.stat().st_size
            if bytes_downloaded == obj.size:
                self.logger.info(f"Object {obj.filename} already downloaded, skipping")
                return target_path
            if bytes_downloaded > obj.size:
                self.logger.warning(
                    f"Partial file for {obj.filename} is larger than expected "
                    f"({bytes_downloaded} > {obj.size}), restarting download"
                )
                target_path.unlink()
                bytes_downloaded = 0
            else:
                self.logger.info(f"Resuming {obj.filename} from byte {bytes_downloaded}")

        url = self.object_url(metadata, obj)
        self.logger.info(f"Downloading {obj.filename}: url={url}, size={obj.size} bytes")

        headers = {}
        if bytes_downloaded > 0:
            headers["Range"] = f"bytes={bytes_downloaded}-"

        async with httpx.AsyncClient(timeout=30.0) as client:
            async with client.stream("GET", url, headers=headers) as response:
                response.raise_for_status()

                # Server ignored the Range header, start over
                if bytes_downloaded > 0 and response.status_code != 206:
                    bytes_downloaded = 0

                mode = "ab" if bytes_downloaded > 0 else "wb"
                async with aiofiles.open(target_path, mode) as f:
                    async for chunk in response.aiter_bytes(chunk_size=self.chunk_size):
                        await f.write(chunk)
                        bytes_downloaded += len(chunk)

        self.logger.info(f"Downloaded {obj.filename}: {bytes_downloaded} bytes")
        return target_path
