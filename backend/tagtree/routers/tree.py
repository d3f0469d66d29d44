import os
from functools import lru_cache

from fastapi import APIRouter, Request

from tagtree.rate_limit import TREE_RATE_LIMIT, limiter

from tagtree.models.layout_models import TreeLayoutRequest, TreeLayoutResponse
from tagtree.models.tree_models import TreeStructureResponse
from tagtree.services.tree_service import build_tree_structure, compute_tree_layout

router = APIRouter(prefix="/api/tree", tags=["tree"])

_LAYOUT_CACHE_SIZE = int(os.environ.get("TAGTREE_LAYOUT_CACHE_SIZE", "128"))


@lru_cache(maxsize=_LAYOUT_CACHE_SIZE)
def _cached_layout(payload: str) -> TreeLayoutResponse:
    request = TreeLayoutRequest.model_validate_json(payload)
    return compute_tree_layout(request.graph, request.seeds, request.filters, request.max_depth)


def compute_tree_layout_cached(request: TreeLayoutRequest) -> TreeLayoutResponse:
    """Memoized ``compute_tree_layout`` keyed on the request minus its viewport.

    Returns a deep copy so callers never share lists with the cached entry.
    """
    payload = request.model_dump_json(exclude={"viewport"})
    result = _cached_layout(payload)
    return result.model_copy(update={"viewport": request.viewport}, deep=True)


@router.post("/layout", response_model=TreeLayoutResponse)
@limiter.limit(TREE_RATE_LIMIT)
async def tree_layout(request: Request, body: TreeLayoutRequest) -> TreeLayoutResponse:
    """Build the tag tree for a graph and return positioned nodes and routed edges.

    A root or seed id missing from the graph yields an empty response, not an error.
    The viewport is echoed back so the caller can restore its pan/zoom.
    """
    return compute_tree_layout_cached(body)


@router.post("/structure", response_model=TreeStructureResponse)
@limiter.limit(TREE_RATE_LIMIT)
async def tree_structure(request: Request, body: TreeLayoutRequest) -> TreeStructureResponse:
    """Return the consolidated tag tree without coordinates."""
    return build_tree_structure(body.graph, body.seeds, body.filters, body.max_depth)
