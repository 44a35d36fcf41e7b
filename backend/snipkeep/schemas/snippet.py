"""
SnipKeep Backend — Snippet Request/Response Schemas
====================================================

What:  Pydantic models defining the snippet API contract.
How:   FastAPI validates request bodies against the input models and
       serializes service results through the response model.

Validation split:
    These models only check types. Business rules (title length, non-empty
    code, at most five tags) live in SnippetService so they raise our own
    ValidationError with the messages the API documents.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class Snippet(BaseModel):
    """
    What:  A stored snippet, exactly as persisted in snippets.json.
    Who:   Returned by create, list, search and update.
    """
    id: str = Field(description="Unique snippet identifier (UUID4 string)")
    owner: str = Field(description="Id of the user who created the snippet")
    title: str = Field(description="Snippet title, 1-100 characters")
    language: str = Field(default="", description="Free-text language name")
    description: str = Field(default="", description="Optional longer description")
    code: str = Field(description="The snippet source text")
    tags: List[str] = Field(default_factory=list, description="Normalized lowercase tags (max 5)")
    created: int = Field(description="Creation time in milliseconds since the Unix epoch")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SnippetCreate(BaseModel):
    """
    Body of POST /snippets.

    Every field is optional at the schema level; SnippetService decides
    what is missing or out of range.
    """
    title: Optional[str] = None
    language: Optional[str] = None
    description: Optional[str] = None
    code: Optional[str] = None
    tags: Optional[List[str]] = None


class SnippetUpdate(BaseModel):
    """
    Body of PUT /snippets/{id}.

    Text fields replace the stored value only when truthy; an empty string
    means "no change". `tags` is different: whether it was sent at all is
    read from `model_fields_set`, so `"tags": []` clears the tags while an
    omitted `tags` keeps them.
    """
    title: Optional[str] = None
    language: Optional[str] = None
    description: Optional[str] = None
    code: Optional[str] = None
    tags: Optional[List[str]] = None

    @property
    def tags_supplied(self) -> bool:
        return "tags" in self.model_fields_set and self.tags is not None


class SearchParams(BaseModel):
    """Query string of GET /snippets/search."""
    q: Optional[str] = Field(default=None, description="Substring of title, description or code")
    language: Optional[str] = Field(default=None, description="Exact language, or 'all'")
    tags: Optional[str] = Field(default=None, description="Comma-separated tags, all required")
