"""
================================================================================
Session Registry
================================================================================

Per-thread storage of the active browser session.

The registry is an explicit object, handed to whoever needs the active page
(the lifecycle manager, page objects, fixtures). Entries are keyed by the
identity of the calling thread; a different identity function can be
injected so unit tests can impersonate threads without starting any.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Hashable, List, Optional

from loguru import logger

from .exceptions import UninitializedSessionError
from .models import Session


class SessionRegistry:
    """
    Map from execution identity to the Session it currently owns.

    Each key is only ever read or written by its owning thread, so entries
    need no locking; no thread can observe another thread's session.

    Usage:
        >>> registry = SessionRegistry()
        >>> registry.set_active_page(page)
        >>> registry.get_active_frame()        # page.main_frame
        >>> registry.set_active_frame(page.frame("frame-top"))
        >>> registry.clear()
    """

    def __init__(self, identity: Callable[[], Hashable] = threading.get_ident):
        """
        Args:
            identity: Returns the key of the caller. Defaults to the thread id.
        """
        self._identity = identity
        self._sessions: Dict[Hashable, Session] = {}

    def current_owner(self) -> Hashable:
        """Identity of the caller."""
        return self._identity()

    # =========================================================================
    # Session
    # =========================================================================

    def register(self, session: Session) -> None:
        """
        Bind a fully started session to the caller.

        The frame selection starts empty, as with set_active_page().
        """
        owner = self._identity()
        session.owner = owner
        session.frame = None
        self._sessions[owner] = session
        logger.debug(f"Registered session '{session.test_name}' for owner {owner}")

    def get_session(self) -> Session:
        """Return the caller's session or raise UninitializedSessionError."""
        owner = self._identity()
        session = self._sessions.get(owner)
        if session is None:
            raise UninitializedSessionError(owner, "session")
        return session

    def find_session(self) -> Optional[Session]:
        """Return the caller's session, or None."""
        return self._sessions.get(self._identity())

    def has_session(self) -> bool:
        return self._identity() in self._sessions

    # =========================================================================
    # Page / Frame
    # =========================================================================

    def set_active_page(self, page: Any) -> None:
        """
        Make page the caller's active page and forget any selected frame.

        A frame belonging to the previous page must never be targeted by
        the next action.
        """
        owner = self._identity()
        session = self._sessions.get(owner)
        if session is None:
            session = Session(owner=owner)
            self._sessions[owner] = session
        session.page = page
        session.frame = None

    def get_active_page(self) -> Any:
        """Return the caller's page or raise UninitializedSessionError."""
        owner = self._identity()
        session = self._sessions.get(owner)
        if session is None or session.page is None:
            raise UninitializedSessionError(owner, "page")
        return session.page

    def set_active_frame(self, frame: Any) -> None:
        """
        Select frame for subsequent actions; None returns to the main frame.

        Raises:
            UninitializedSessionError: no page is active for the caller
        """
        owner = self._identity()
        session = self._sessions.get(owner)
        if session is None or session.page is None:
            raise UninitializedSessionError(owner, "page")
        session.frame = frame

    def get_active_frame(self) -> Any:
        """Selected frame, or the active page's main frame when none is selected."""
        owner = self._identity()
        session = self._sessions.get(owner)
        if session is None or session.page is None:
            raise UninitializedSessionError(owner, "frame")
        if session.frame is not None:
            return session.frame
        return session.page.main_frame

    # =========================================================================
    # Cleanup
    # =========================================================================

    def clear(self) -> None:
        """Remove every handle of the caller. Idempotent."""
        self._sessions.pop(self._identity(), None)

    def owners(self) -> List[Hashable]:
        """Identities that currently hold an entry."""
        return list(self._sessions.keys())

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = [
    "SessionRegistry",
]
