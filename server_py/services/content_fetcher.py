"""Source file retrieval for the generation pipeline."""
import asyncio
from typing import Any, List, Optional

from core.config import get_settings
from core.logging import log_info, log_warning
from schemas.entities import FileReference
from utils.exceptions import RepoTestGenException, ValidationError

FETCH_BATCH_SIZE = 10


class ContentFetcher:
    """Fetches file text for one repository.

    Preview reads are capped at ``preview_limit`` characters; full reads are not.
    """

    def __init__(self, client: Any, repository: Optional[str], preview_limit: Optional[int] = None):
        self.client = client
        self.repository = repository
        self.preview_limit = preview_limit or get_settings().preview_char_limit

    async def fetch(self, path: str) -> str:
        """Decoded text of ``path``.

        Raises FetchError on transport/auth failure, ContentTypeError for directories.
        """
        if not self.repository:
            raise ValidationError("No repository selected")
        return await self.client.get_file_content(self.repository, path)

    async def fetch_preview(self, path: str) -> str:
        content = await self.fetch(path)
        return content[:self.preview_limit]

    async def fetch_full(self, path: str) -> str:
        return await self.fetch(path)

    async def _fetch_one(self, ref: FileReference, preview: bool) -> FileReference:
        try:
            content = await (self.fetch_preview(ref.path) if preview else self.fetch_full(ref.path))
        except RepoTestGenException as e:
            log_warning(f"Content unavailable for {ref.path}: {e.message}", "content")
            return ref.model_copy(update={"content": None})
        return ref.model_copy(update={"content": content})

    async def fetch_batch(self, refs: List[FileReference], preview: bool = True) -> List[FileReference]:
        """Fetch content for every reference, keeping input order.

        A file that cannot be fetched comes back with ``content=None``; the
        batch itself never fails.
        """
        results: List[FileReference] = []
        for i in range(0, len(refs), FETCH_BATCH_SIZE):
            batch = refs[i:i + FETCH_BATCH_SIZE]
            results.extend(await asyncio.gather(*[self._fetch_one(ref, preview) for ref in batch]))

        available = sum(1 for ref in results if ref.content is not None)
        log_info(
            f"Fetched {'preview' if preview else 'full'} content for {available}/{len(refs)} files",
            "content",
        )
        return results
