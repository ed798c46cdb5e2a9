"""Message threading endpoint.

- POST /api/messages/threaded - thread a flat message list for nested display
"""

from __future__ import annotations

from fastapi import APIRouter

from socialq.api.models import ThreadRequest, ThreadResponse
from socialq.messages.threader import reconstruct_threads
from socialq.observability.logging import get_logger
from socialq.observability.telemetry import counter

router = APIRouter(prefix="/api/messages", tags=["messages"])
logger = get_logger(__name__)


@router.post("/threaded", response_model=ThreadResponse)
async def thread_messages(request: ThreadRequest) -> ThreadResponse:
    """
    Rebuild reply chains from a flat message list.

    Returns the flat list (timestamp order, with reply flags, child ids and
    depth) and the nested tree rooted at the top-level messages.

    Side Effects:
        None (pure computation, recomputed on every call)
    """
    view = reconstruct_threads(request.messages)
    counter("api.messages_threaded", len(view))
    logger.debug("Threaded %d messages into %d roots", len(view), len(view.top_level))

    return ThreadResponse(
        total=len(view),
        top_level=[node.id for node in view.top_level],
        orphans=[node.id for node in view.orphans],
        anomalies=[node.id for node in view.anomalies],
        messages=[node.to_dict() for node in view.messages],
        tree=view.as_tree(),
    )
