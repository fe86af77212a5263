"""Session domain models for the interactive editor."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from models.image_models import EditResult, EncodedImage


class SessionPhase(str, Enum):
	"""Phases of one edit session."""

	IDLE = "IDLE"
	LOADING = "LOADING"
	SUCCESS = "SUCCESS"
	ERROR = "ERROR"


@dataclass
class SessionState:
	"""In-memory state of one browser session.

	`generation` increases whenever a newer action supersedes in-flight work
	(new source image applied, reset); completions tagged with an older
	generation are dropped.
	"""

	session_id: str
	instruction: str
	phase: SessionPhase = SessionPhase.IDLE
	source_image: Optional[EncodedImage] = None
	result: Optional[EditResult] = None
	generation: int = 0
	created_at: float = field(default_factory=lambda: time.time())
	touched_at: float = field(default_factory=lambda: time.time())

	@property
	def generated_image(self) -> Optional[EncodedImage]:
		if self.result is None:
			return None
		return self.result.image

	@property
	def error_message(self) -> Optional[str]:
		if self.result is None:
			return None
		return self.result.message
