"""
Reply threading for inbox conversations.

Turns a flat, unordered list of messages with optional parent links into a
forest of reply chains for nested display.

Rules:
- Messages are ordered by timestamp (stable for ties); naive timestamps are UTC.
- parent_message_id is normalized to a positive int; anything else is "no parent".
- is_reply is True iff a valid parent id is declared, whether or not the
  parent is present.
- Orphans (declared parent missing) are promoted to the top level, depth 0.
- A parent chain that loops is broken at its earliest message, which becomes
  top-level; every message on the loop is flagged is_anomalous.
- Duplicate ids: the earliest occurrence wins.

Side Effects:
    None beyond logging and telemetry; recomputed on every call.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from socialq.config import THREAD_TREE_MAX_DEPTH
from socialq.messages.models import Message, ThreadedMessage
from socialq.observability.logging import get_logger
from socialq.observability.telemetry import counter, log_event, time_block

logger = get_logger(__name__)

# Walk marks for cycle detection
_ON_PATH = 1
_DONE = 2


def normalize_parent_id(value: Any) -> int | None:
    """Coerce a raw parent reference to a positive int, or None for "no parent".

    Accepts ints, integral floats and numeric strings. None, booleans,
    non-numeric values, zero and negatives all mean top-level.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        parent_id = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        parent_id = int(value)
    elif isinstance(value, str):
        try:
            parent_id = int(value.strip())
        except ValueError:
            return None
    else:
        return None

    return parent_id if parent_id > 0 else None


def _sort_key(timestamp: datetime) -> datetime:
    return timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=UTC)


@dataclass
class ThreadView:
    """Result of one reconstruction."""

    messages: list[ThreadedMessage]
    top_level: list[ThreadedMessage]
    _index: dict[int, ThreadedMessage] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not self._index:
            self._index = {node.id: node for node in self.messages}

    def __len__(self) -> int:
        return len(self.messages)

    def get(self, message_id: int) -> ThreadedMessage | None:
        return self._index.get(message_id)

    def children_of(self, message_id: int) -> list[ThreadedMessage]:
        node = self._index.get(message_id)
        if node is None:
            return []
        return [self._index[child_id] for child_id in node.child_messages]

    @property
    def orphans(self) -> list[ThreadedMessage]:
        return [node for node in self.messages if node.is_orphan]

    @property
    def anomalies(self) -> list[ThreadedMessage]:
        return [node for node in self.messages if node.is_anomalous]

    def walk(self) -> Iterator[ThreadedMessage]:
        """Depth-first, pre-order traversal in display order."""
        stack = list(reversed(self.top_level))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(self.children_of(node.id)))

    def as_tree(self, max_depth: int = THREAD_TREE_MAX_DEPTH) -> list[dict[str, Any]]:
        """Nested rendering: each node carries its replies under "replies".

        Nesting stops at max_depth. Every reply below that level is listed,
        in display order, directly under its ancestor at max_depth, which is
        marked "truncated". Each node keeps its real "depth".
        """
        rendered = {
            node.id: {**node.to_dict(), "replies": [], "truncated": False}
            for node in self.messages
        }
        top_ids = {node.id for node in self.top_level}
        # Rendered container for each node's own replies
        anchor: dict[int, int] = {}

        for node in self.walk():
            if node.depth <= max_depth:
                anchor[node.id] = node.id
            if node.id in top_ids:
                continue

            parent_id = node.parent_id
            if node.depth <= max_depth:
                rendered[parent_id]["replies"].append(rendered[node.id])
            else:
                target = anchor[parent_id]
                anchor[node.id] = target
                rendered[target]["replies"].append(rendered[node.id])
                rendered[target]["truncated"] = True

        return [rendered[node.id] for node in self.top_level]


def _index_messages(messages: Iterable[Message]) -> dict[int, ThreadedMessage]:
    ordered = sorted(messages, key=lambda m: _sort_key(m.timestamp))

    nodes: dict[int, ThreadedMessage] = {}
    for msg in ordered:
        if msg.id in nodes:
            logger.warning("Dropping duplicate message id %s", msg.id)
            counter("threading.duplicate_ids")
            continue
        parent_id = normalize_parent_id(msg.parent_message_id)
        nodes[msg.id] = ThreadedMessage(
            message=msg,
            parent_id=parent_id,
            is_reply=parent_id is not None,
        )
    return nodes


def _resolve_parents(nodes: dict[int, ThreadedMessage]) -> dict[int, int | None]:
    """Map each id to the parent it is rendered under, breaking loops."""
    effective: dict[int, int | None] = {}
    for node in nodes.values():
        if node.parent_id is None:
            effective[node.id] = None
        elif node.parent_id not in nodes:
            node.is_orphan = True
            effective[node.id] = None
            logger.debug("Message %s replies to missing parent %s", node.id, node.parent_id)
        else:
            effective[node.id] = node.parent_id

    position = {message_id: i for i, message_id in enumerate(nodes)}
    marks: dict[int, int] = {}
    for start in nodes:
        if start in marks:
            continue
        path: list[int] = []
        current: int | None = start
        while current is not None and current not in marks:
            marks[current] = _ON_PATH
            path.append(current)
            current = effective[current]

        if current is not None and marks[current] == _ON_PATH:
            loop = path[path.index(current) :]
            for message_id in loop:
                nodes[message_id].is_anomalous = True
            breaker = min(loop, key=position.__getitem__)
            effective[breaker] = None
            logger.warning("Parent chain cycle %s broken at message %s", loop, breaker)
            counter("threading.cycles")

        for message_id in path:
            marks[message_id] = _DONE

    return effective


def _assign_depths(nodes: dict[int, ThreadedMessage], effective: dict[int, int | None]) -> None:
    depths: dict[int, int] = {}
    for message_id in nodes:
        chain: list[int] = []
        current: int | None = message_id
        while current is not None and current not in depths:
            chain.append(current)
            current = effective[current]

        depth = depths[current] if current is not None else -1
        for link in reversed(chain):
            depth += 1
            depths[link] = depth

    for message_id, node in nodes.items():
        node.depth = depths[message_id]


def reconstruct_threads(messages: Iterable[Message]) -> ThreadView:
    """Build the reply forest for a flat message list.

    Args:
        messages: Messages in any order

    Returns:
        ThreadView with every message in timestamp order and the top-level roots
    """
    with time_block("threading.reconstruct.latency"):
        nodes = _index_messages(messages)
        effective = _resolve_parents(nodes)
        _assign_depths(nodes, effective)

        # Insertion order of nodes is timestamp order, so child lists are too
        for node in nodes.values():
            parent_id = effective[node.id]
            if parent_id is not None:
                nodes[parent_id].child_messages.append(node.id)
        for node in nodes.values():
            node.has_replies = bool(node.child_messages)

        ordered = list(nodes.values())
        top_level = [node for node in ordered if effective[node.id] is None]

    view = ThreadView(messages=ordered, top_level=top_level, _index=nodes)
    if view.orphans or view.anomalies:
        log_event(
            "threading.irregular",
            total=len(view),
            orphans=len(view.orphans),
            anomalies=len(view.anomalies),
        )
    return view
