from __future__ import annotations

import logging
import re

from actionagent.errors import AttachmentNotFound
from actionagent.tools.base import FileLookup, FileStore, ResolvedAttachment, StoredFile

logger = logging.getLogger(__name__)

MAX_CONTAINS_CANDIDATES = 5

_ATTACHMENT_REFERENCE = re.compile(
    r"\badjunt\w*\s+(?:el|la|los|las)?\s*(?:archivo|documento|fichero|hoja|presentaci[oó]n)?\s*"
    r"(?:[\"'“‘]([^\"'”’]+)[\"'”’]|([\w\-]+\.[A-Za-z0-9]{2,5}))",
    re.IGNORECASE,
)


class AttachmentResolver:
    def __init__(self, file_store: FileStore) -> None:
        self._file_store = file_store

    def find_by_name(self, access_token: str, name: str) -> FileLookup:
        query = (name or "").strip()
        if not query:
            return FileLookup(success=False, error="Empty file reference.")

        exact = self._file_store.search(access_token, query, exact=True, limit=1)
        if exact:
            return FileLookup(success=True, file_id=exact[0].file_id, file_name=exact[0].name)

        candidates = self._file_store.search(
            access_token,
            query,
            exact=False,
            limit=MAX_CONTAINS_CANDIDATES,
        )
        best = select_best_candidate(query, candidates[:MAX_CONTAINS_CANDIDATES])
        if best is None:
            return FileLookup(success=False, error=f'No se encontró el archivo "{query}"')
        return FileLookup(success=True, file_id=best.file_id, file_name=best.name)

    def require(self, access_token: str, reference_text: str) -> ResolvedAttachment:
        lookup = self.find_by_name(access_token, reference_text)
        if not lookup.success or not lookup.file_id:
            raise AttachmentNotFound(lookup.error or f'No se encontró el archivo "{reference_text}"')
        return ResolvedAttachment(
            reference_text=reference_text,
            resolved_id=lookup.file_id,
            file_name=lookup.file_name or reference_text,
        )

    def resolve(self, access_token: str, reference_text: str) -> ResolvedAttachment | None:
        """Like ``require`` but a miss or lookup error yields ``None``."""
        try:
            return self.require(access_token, reference_text)
        except AttachmentNotFound as exc:
            logger.info("Attachment not found for reference %r: %s", reference_text, exc)
        except Exception as exc:
            logger.warning("Attachment lookup failed for %r: %s", reference_text, exc)
        return None


def select_best_candidate(query: str, candidates: list[StoredFile]) -> StoredFile | None:
    if not candidates:
        return None
    lowered_query = query.strip().lower()
    terms = [term for term in re.split(r"\s+", lowered_query) if term]

    def score(row: StoredFile) -> tuple[int, int]:
        name = row.name.lower()
        contains_full_query = 1 if lowered_query and lowered_query in name else 0
        matched_terms = sum(1 for term in terms if term in name)
        return (contains_full_query, matched_terms)

    # max() keeps the first of equal scores, so store ordering breaks ties.
    return max(candidates, key=score)


def find_attachment_references(text: str) -> list[str]:
    out: list[str] = []
    for match in _ATTACHMENT_REFERENCE.finditer(text or ""):
        reference = (match.group(1) or match.group(2) or "").strip()
        if reference and reference not in out:
            out.append(reference)
    return out
