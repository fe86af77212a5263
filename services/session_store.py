"""Simple in-memory store for edit sessions."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict
from uuid import uuid4

from services.edit_session import EditSession
from utils.config import DEFAULT_MAX_SESSIONS, DEFAULT_SESSION_TTL_SECONDS

logger = logging.getLogger(__name__)


class SessionStore:
	"""Manage edit sessions keyed by an opaque id.

	Sessions idle for longer than `ttl_seconds` expire and are pruned when
	new sessions are created. At most `max_sessions` are kept; creating one
	beyond that evicts the least recently used.
	"""

	def __init__(
		self,
		default_instruction: str = "",
		ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
		max_sessions: int = DEFAULT_MAX_SESSIONS,
		clock: Callable[[], float] = time.time,
	) -> None:
		if max_sessions < 1:
			raise ValueError("max_sessions must be at least 1")
		self.default_instruction = default_instruction
		self.ttl_seconds = ttl_seconds
		self.max_sessions = max_sessions
		self._clock = clock
		self._sessions: Dict[str, EditSession] = {}

	def create(self) -> EditSession:
		"""Create a new session seeded with the default instruction."""
		now = self._clock()
		self.prune_expired(now)
		while len(self._sessions) >= self.max_sessions:
			oldest = min(self._sessions.values(), key=lambda s: s.state.touched_at)
			logger.info("Evicting least recently used session %s", oldest.session_id)
			del self._sessions[oldest.session_id]

		session_id = uuid4().hex
		session = EditSession(session_id, instruction=self.default_instruction)
		session.state.created_at = now
		session.state.touched_at = now
		self._sessions[session_id] = session
		return session

	def get(self, session_id: str) -> EditSession:
		"""Return a live session and mark it used, or raise KeyError if missing or expired."""
		now = self._clock()
		session = self._sessions.get(session_id)
		if session is not None and self._expired(session, now):
			del self._sessions[session_id]
			session = None
		if session is None:
			raise KeyError(f"Session {session_id} not found")
		session.state.touched_at = now
		return session

	def discard(self, session_id: str) -> None:
		"""Forget a session and everything it holds."""
		if self._sessions.pop(session_id, None) is None:
			raise KeyError(f"Session {session_id} not found")

	def prune_expired(self, now: float | None = None) -> int:
		"""Drop every expired session and return how many were dropped."""
		if now is None:
			now = self._clock()
		expired = [sid for sid, session in self._sessions.items() if self._expired(session, now)]
		for sid in expired:
			del self._sessions[sid]
		if expired:
			logger.info("Pruned %d expired session(s)", len(expired))
		return len(expired)

	def _expired(self, session: EditSession, now: float) -> bool:
		return now - session.state.touched_at > self.ttl_seconds

	def __len__(self) -> int:
		return len(self._sessions)
