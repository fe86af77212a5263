"""State machine for one interactive edit session."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from models.image_models import EditRequest, EditResult, EncodedImage
from models.session_models import SessionPhase, SessionState

logger = logging.getLogger(__name__)


class EditSession:
	"""Own a `SessionState` and apply the four user actions to it.

	Asynchronous work is tagged with a ticket when it starts and its
	completion is applied only if nothing newer superseded it:
	image reads carry a selection ticket, edit requests carry the
	session generation.
	"""

	def __init__(self, session_id: str, instruction: str = "") -> None:
		self.state = SessionState(session_id=session_id, instruction=instruction)
		self._selection_seq = 0
		self._pending: Optional[int] = None

	@property
	def session_id(self) -> str:
		return self.state.session_id

	def begin_image_select(self) -> int:
		"""Start a new file selection and return its ticket."""
		self._selection_seq += 1
		return self._selection_seq

	def complete_image_select(self, ticket: int, image: EncodedImage) -> bool:
		"""Store a freshly encoded source image unless a newer selection started since."""
		if ticket != self._selection_seq:
			logger.info("Session %s: dropping stale image read %d", self.session_id, ticket)
			return False
		self.state.source_image = image
		self.state.result = None
		self.state.generation += 1
		return True

	def set_instruction(self, instruction: str) -> None:
		self.state.instruction = instruction

	def can_generate(self) -> bool:
		return (
			self.state.phase is not SessionPhase.LOADING
			and self.state.source_image is not None
			and bool(self.state.instruction.strip())
		)

	def begin_generate(self, instruction: Optional[str] = None) -> Optional[Tuple[int, EditRequest]]:
		"""Move to LOADING and return `(ticket, request)`, or None when the guard blocks it.

		A new `instruction` is applied first, unless an edit is already running;
		the running edit keeps the instruction it was started with.
		"""
		if self.state.phase is SessionPhase.LOADING:
			return None
		if instruction is not None:
			self.set_instruction(instruction)
		if not self.can_generate():
			return None
		self.state.phase = SessionPhase.LOADING
		if self.state.result is not None and not self.state.result.ok:
			self.state.result = None
		ticket = self.state.generation
		self._pending = ticket
		request = EditRequest(source_image=self.state.source_image, instruction=self.state.instruction)
		return ticket, request

	def complete_generate(self, ticket: int, result: EditResult) -> bool:
		"""Apply an edit result if it still belongs to the current generation."""
		owns_loading = self._pending == ticket and self.state.phase is SessionPhase.LOADING
		if owns_loading:
			self._pending = None

		if ticket != self.state.generation or not owns_loading:
			logger.info("Session %s: discarding stale edit result (generation %d)", self.session_id, ticket)
			if owns_loading:
				self.state.phase = SessionPhase.IDLE
			return False

		self.state.result = result
		self.state.phase = SessionPhase.SUCCESS if result.ok else SessionPhase.ERROR
		if not result.ok:
			logger.warning("Session %s: edit failed: %s", self.session_id, result.error)
		return True

	def reset(self) -> None:
		"""Return to IDLE, dropping the result but keeping source image and instruction."""
		self.state.phase = SessionPhase.IDLE
		self.state.result = None
		self.state.generation += 1
		self._pending = None

	def snapshot(self) -> Dict[str, Any]:
		"""Observable state for the presentation layer."""
		state = self.state
		result = state.result
		source = state.source_image
		generated = state.generated_image
		return {
			"session_id": state.session_id,
			"phase": state.phase.value,
			"instruction": state.instruction,
			"source_image": source.data_url if source else None,
			"source_mime_type": source.mime_type if source else None,
			"generated_image": generated.data_url if generated else None,
			"error": state.error_message,
			"error_kind": result.error.kind if result is not None and result.error is not None else None,
			"latency": float(result.latency) if result is not None and result.ok else None,
			"input_tokens": result.input_tokens if result is not None else None,
			"output_tokens": result.output_tokens if result is not None else None,
			"can_generate": self.can_generate(),
		}
