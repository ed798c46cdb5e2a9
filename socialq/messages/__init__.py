"""
SocialQ messages module - inbox message types and reply threading.
"""

from socialq.messages.models import Message, ThreadedMessage
from socialq.messages.threader import ThreadView, normalize_parent_id, reconstruct_threads

__all__ = [
    "Message",
    "ThreadedMessage",
    "ThreadView",
    "normalize_parent_id",
    "reconstruct_threads",
]
