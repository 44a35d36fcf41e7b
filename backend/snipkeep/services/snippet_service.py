"""
SnipKeep Backend — Snippet Service (Snippet Repository)
========================================================

What:  Create / list / search / update / delete over the snippet collection,
       enforcing ownership and the snippet validation rules.
How:   Every call works on the whole `snippets` collection from the
       RecordStore. Mutating calls go through `store.mutation()`, which holds
       the collection lock for the full load → change → save cycle.
Who:   Called by the snippet route handlers with the caller's user id.

Precondition:
    `caller_id` comes from a live session created by AuthService at login,
    so it always names a registered user. The service does not re-check it
    against the users collection.

Ownership:
    Reads only ever start from the caller's own snippets. Update and delete
    look the id up across all snippets first so a foreign id yields 403
    rather than 404:

        unknown id              → NotFoundError  (404)
        id owned by someone else → ForbiddenError (403)
"""

import logging
import time
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from snipkeep.exceptions import ForbiddenError, NotFoundError, ValidationError
from snipkeep.schemas.snippet import SearchParams, Snippet, SnippetCreate, SnippetUpdate
from snipkeep.services.record_store import SNIPPETS, RecordStore

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100
MAX_TAGS = 5

# Sentinel accepted by search meaning "any language"
ALL_LANGUAGES = "all"


def _now_ms() -> int:
    return int(time.time() * 1000)


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """
    Trim and lowercase each tag, dropping repeats.

    The first occurrence wins, so `["A", " a ", "b"]` becomes `["a", "b"]`.
    """
    return list(dict.fromkeys(tag.strip().lower() for tag in tags))


def parse_tag_query(tags: Optional[str]) -> List[str]:
    """Split a comma-separated tag filter into normalized tags, skipping blanks."""
    if not tags:
        return []
    return [t for t in (part.strip().lower() for part in tags.split(",")) if t]


class SnippetService:
    """
    Business logic for snippets.

    Args:
        store: Record store holding the `snippets` collection.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(self, store: RecordStore, clock: Callable[[], int] = _now_ms):
        self.store = store
        self._clock = clock

    # ── Validation ────────────────────────────────────────────────────────

    @staticmethod
    def _validate_title(title: Any) -> None:
        if not isinstance(title, str) or not 1 <= len(title) <= TITLE_MAX_LENGTH:
            raise ValidationError(message="Invalid title", field="title")

    @staticmethod
    def _validate_tags(tags: Any) -> None:
        if not isinstance(tags, list) or len(tags) > MAX_TAGS:
            raise ValidationError(
                message="Tag error",
                field="tags",
                context={"max_tags": MAX_TAGS},
            )

    # ── Operations ────────────────────────────────────────────────────────

    async def create(self, caller_id: str, data: SnippetCreate) -> Snippet:
        """
        Validate and store a new snippet owned by `caller_id`.

        Validation order:
            1. title: string of 1-100 characters   → "Invalid title"
            2. code: non-empty                       → "Code required"
            3. tags: list of at most 5 entries       → "Tag error"

        The tag limit applies to the list as sent, before duplicates are
        folded together.

        Returns:
            The stored Snippet, including its new id and creation time.

        Raises:
            ValidationError: Any of the rules above fails.
        """
        self._validate_title(data.title)
        if not data.code:
            raise ValidationError(message="Code required", field="code")
        tags = data.tags if data.tags is not None else []
        self._validate_tags(tags)

        record: Dict[str, Any] = {
            "id": str(uuid.uuid4()),
            "owner": caller_id,
            "title": data.title,
            "language": data.language or "",
            "description": data.description or "",
            "code": data.code,
            "tags": normalize_tags(tags),
            "created": self._clock(),
        }

        async with self.store.mutation(SNIPPETS) as snippets:
            snippets.append(record)

        logger.info("Snippet %s created by user %s", record["id"], caller_id)
        return Snippet.model_validate(record)

    async def _owned(self, caller_id: str) -> List[Dict[str, Any]]:
        snippets = await self.store.load(SNIPPETS)
        return [s for s in snippets if s.get("owner") == caller_id]

    async def list_mine(self, caller_id: str) -> List[Snippet]:
        """
        All snippets owned by `caller_id`, newest first.

        Snippets created in the same millisecond keep their storage order.
        """
        mine = await self._owned(caller_id)
        mine.sort(key=lambda s: s.get("created", 0), reverse=True)
        return [Snippet.model_validate(s) for s in mine]

    async def search(self, caller_id: str, params: SearchParams) -> List[Snippet]:
        """
        Filter the caller's snippets.

        Filters are applied in order, each only when supplied:
            q         case-insensitive substring of title, description or code
            language  case-insensitive equality; "all" disables the filter
            tags      comma-separated; every listed tag must be present

        Results keep storage order. Unlike list_mine() they are not sorted
        by creation time.
        """
        results = await self._owned(caller_id)

        needle = (params.q or "").lower()
        if needle:
            results = [
                s for s in results
                if needle in s.get("title", "").lower()
                or needle in s.get("description", "").lower()
                or needle in s.get("code", "").lower()
            ]

        language = params.language
        if language and language.lower() != ALL_LANGUAGES:
            wanted = language.lower()
            results = [s for s in results if s.get("language", "").lower() == wanted]

        tag_list = parse_tag_query(params.tags)
        if tag_list:
            results = [
                s for s in results
                if all(tag in s.get("tags", []) for tag in tag_list)
            ]

        logger.debug(
            "Search by user %s (q=%r, language=%r, tags=%r) matched %d snippets",
            caller_id, params.q, params.language, tag_list, len(results),
        )
        return [Snippet.model_validate(s) for s in results]

    @staticmethod
    def _find_owned(
        snippets: List[Dict[str, Any]], caller_id: str, snippet_id: str
    ) -> int:
        """Index of `snippet_id` in `snippets`, after the ownership check."""
        for index, snippet in enumerate(snippets):
            if snippet.get("id") == snippet_id:
                break
        else:
            raise NotFoundError(resource="snippet", resource_id=snippet_id)

        if snippet.get("owner") != caller_id:
            logger.warning(
                "User %s denied access to snippet %s owned by %s",
                caller_id, snippet_id, snippet.get("owner"),
            )
            raise ForbiddenError(context={"snippet_id": snippet_id})
        return index

    async def update(
        self, caller_id: str, snippet_id: str, patch: SnippetUpdate
    ) -> Snippet:
        """
        Apply a partial update to one of the caller's snippets.

        Field rules:
            title, language, description, code
                Replaced only by a truthy value. An empty string leaves the
                stored value as it was.
            tags
                Replaced wholesale whenever the patch carries a list, even
                an empty one. Omitted or null tags are left alone.

        The lookup and ownership check run before the patch is validated.

        Raises:
            NotFoundError: No snippet has this id.
            ForbiddenError: The snippet belongs to another user.
            ValidationError: New title longer than 100 characters, or more
                             than 5 tags.
        """
        async with self.store.mutation(SNIPPETS) as snippets:
            index = self._find_owned(snippets, caller_id, snippet_id)
            snippet = snippets[index]

            # Raising here leaves the collection unsaved
            if patch.title:
                self._validate_title(patch.title)
            if patch.tags_supplied:
                self._validate_tags(patch.tags)

            for name in ("title", "language", "description", "code"):
                value = getattr(patch, name)
                if value:
                    snippet[name] = value

            if patch.tags_supplied:
                snippet["tags"] = normalize_tags(patch.tags)

        logger.info("Snippet %s updated by user %s", snippet_id, caller_id)
        return Snippet.model_validate(snippet)

    async def delete(self, caller_id: str, snippet_id: str) -> None:
        """
        Physically remove one of the caller's snippets.

        Raises:
            NotFoundError: No snippet has this id (including one already deleted).
            ForbiddenError: The snippet belongs to another user.
        """
        async with self.store.mutation(SNIPPETS) as snippets:
            index = self._find_owned(snippets, caller_id, snippet_id)
            del snippets[index]

        logger.info("Snippet %s deleted by user %s", snippet_id, caller_id)
