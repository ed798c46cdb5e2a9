"""SocialQ - threaded social inbox and avatar persona sessions"""

from __future__ import annotations

__version__ = "0.1.0"


# Lazy imports so lightweight modules (config, logging) load without the engines
def __getattr__(name: str):
    if name in ("reconstruct_threads", "ThreadView", "ThreadedMessage", "Message"):
        from socialq.messages import models, threader

        if name == "reconstruct_threads":
            return threader.reconstruct_threads
        if name == "ThreadView":
            return threader.ThreadView
        if name == "ThreadedMessage":
            return models.ThreadedMessage
        if name == "Message":
            return models.Message

    if name in ("PersonaStateManager", "InMemorySessionStore"):
        from socialq.persona import state_manager, store

        if name == "PersonaStateManager":
            return state_manager.PersonaStateManager
        if name == "InMemorySessionStore":
            return store.InMemorySessionStore

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "Message",
    "ThreadedMessage",
    "ThreadView",
    "reconstruct_threads",
    "PersonaStateManager",
    "InMemorySessionStore",
]
