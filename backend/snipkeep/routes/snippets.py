"""
SnipKeep Backend — Snippet Route Handlers
==========================================

What:  CRUD and search endpoints under /snippets.
How:   Every handler depends on `require_login`, so an anonymous request
       gets 401 before SnippetService is called. Handlers pass the session
       user's id to the service and return its result unchanged.

Route Inventory:
    POST   /snippets          create
    GET    /snippets          list own snippets, newest first
    GET    /snippets/search   filter own snippets by q / language / tags
    PUT    /snippets/{id}     partial update (owner only)
    DELETE /snippets/{id}     delete (owner only)

`/snippets/search` is declared before `/snippets/{id}` routes; the two never
clash because the id routes only accept PUT and DELETE.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from snipkeep.dependencies import get_snippet_service, require_login
from snipkeep.schemas.auth import CurrentUser, ErrorResponse, SuccessResponse
from snipkeep.schemas.snippet import SearchParams, Snippet, SnippetCreate, SnippetUpdate
from snipkeep.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/snippets",
    tags=["Snippets"],
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
)


@router.post(
    "",
    response_model=Snippet,
    responses={400: {"description": "Invalid title, code or tags", "model": ErrorResponse}},
    summary="Create a snippet",
)
async def create_snippet(
    body: SnippetCreate,
    user: CurrentUser = Depends(require_login),
    service: SnippetService = Depends(get_snippet_service),
) -> Snippet:
    return await service.create(user.id, body)


@router.get("", response_model=List[Snippet], summary="List my snippets, newest first")
async def list_snippets(
    user: CurrentUser = Depends(require_login),
    service: SnippetService = Depends(get_snippet_service),
) -> List[Snippet]:
    return await service.list_mine(user.id)


@router.get(
    "/search",
    response_model=List[Snippet],
    summary="Search my snippets",
    description=(
        "Filters the caller's snippets. `q` matches title, description or code "
        "case-insensitively; `language` must match exactly (ignoring case) unless "
        "it is 'all'; `tags` is a comma-separated list and every tag must be present."
    ),
)
async def search_snippets(
    q: Optional[str] = Query(default=None),
    language: Optional[str] = Query(default=None),
    tags: Optional[str] = Query(default=None),
    user: CurrentUser = Depends(require_login),
    service: SnippetService = Depends(get_snippet_service),
) -> List[Snippet]:
    params = SearchParams(q=q, language=language, tags=tags)
    return await service.search(user.id, params)


@router.put(
    "/{snippet_id}",
    response_model=Snippet,
    responses={
        400: {"description": "Invalid title or tags", "model": ErrorResponse},
        403: {"description": "Snippet belongs to another user", "model": ErrorResponse},
        404: {"description": "No such snippet", "model": ErrorResponse},
    },
    summary="Update one of my snippets",
)
async def update_snippet(
    snippet_id: str,
    body: SnippetUpdate,
    user: CurrentUser = Depends(require_login),
    service: SnippetService = Depends(get_snippet_service),
) -> Snippet:
    return await service.update(user.id, snippet_id, body)


@router.delete(
    "/{snippet_id}",
    response_model=SuccessResponse,
    responses={
        403: {"description": "Snippet belongs to another user", "model": ErrorResponse},
        404: {"description": "No such snippet", "model": ErrorResponse},
    },
    summary="Delete one of my snippets",
)
async def delete_snippet(
    snippet_id: str,
    user: CurrentUser = Depends(require_login),
    service: SnippetService = Depends(get_snippet_service),
) -> SuccessResponse:
    await service.delete(user.id, snippet_id)
    return SuccessResponse()
