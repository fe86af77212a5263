"""Session lifecycle helpers for the edit workflow."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, UploadFile

from models.image_models import EditResult
from services.edit_session import EditSession
from services.gemini.image_editor import ImageEditService
from services.image_encoder import ImageEncoder
from services.session_store import SessionStore
from utils.errors import ServiceError, ValidationError

logger = logging.getLogger(__name__)


def _get_session(request: Request, session_id: str) -> EditSession:
	store: SessionStore = request.app.state.session_store
	try:
		return store.get(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=exc.args[0]) from exc


def _get_image_editor(request: Request) -> ImageEditService:
	editor = getattr(request.app.state, "image_editor", None)
	if editor is None:
		raise HTTPException(status_code=503, detail="Image service not initialized.")
	return editor


async def start_session(request: Request) -> Dict[str, Any]:
	"""Create a new edit session and return its initial state."""
	store: SessionStore = request.app.state.session_store
	return store.create().snapshot()


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return the observable state of a session."""
	return _get_session(request, session_id).snapshot()


async def discard_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Drop a session along with its images."""
	store: SessionStore = request.app.state.session_store
	try:
		store.discard(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=exc.args[0]) from exc
	return {"session_id": session_id, "discarded": True}


async def select_image(request: Request, session_id: str, file: UploadFile) -> Dict[str, Any]:
	"""Encode an uploaded image and make it the session's source image.

	A read that finishes after a newer upload for the same session started
	is dropped; the response then reports `applied: false`.
	"""
	session = _get_session(request, session_id)
	encoder: ImageEncoder = request.app.state.image_encoder

	ticket = session.begin_image_select()
	try:
		image = await encoder.encode(file)
	except ValidationError as exc:
		raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
	except OSError as exc:
		raise HTTPException(status_code=400, detail=f"Unable to load the image: {exc}") from exc

	applied = session.complete_image_select(ticket, image)
	return {**session.snapshot(), "applied": applied}


async def update_instruction(request: Request, session_id: str, instruction: str) -> Dict[str, Any]:
	"""Replace the session's edit instruction."""
	session = _get_session(request, session_id)
	session.set_instruction(instruction)
	return session.snapshot()


async def generate(request: Request, session_id: str, instruction: Optional[str] = None) -> Dict[str, Any]:
	"""Submit the session's image and instruction for editing.

	Returns the session state. When the guard blocks the request (no
	image, blank instruction, or an edit already running) nothing is sent
	and `submitted` is false; a new instruction is ignored while an edit runs. Edit failures are reported through the
	ERROR phase, not as HTTP errors.
	"""
	session = _get_session(request, session_id)
	editor = _get_image_editor(request)
	started = session.begin_generate(instruction)
	if started is None:
		return {**session.snapshot(), "submitted": False}

	ticket, edit_request = started
	try:
		result = await editor.submit(edit_request)
	except Exception as exc:
		logger.exception("Unexpected failure while editing image for session %s", session_id)
		result = EditResult.failure(ServiceError(str(exc) or exc.__class__.__name__))
	session.complete_generate(ticket, result)
	return {**session.snapshot(), "submitted": True}


async def reset_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Start over: clear the generated image, keep source image and instruction."""
	session = _get_session(request, session_id)
	session.reset()
	return session.snapshot()


async def download_result(request: Request, session_id: str) -> Dict[str, Any]:
	"""Return the generated PNG bytes and a download file name.

	Raises:
		HTTPException(404) if the session has no generated image.
	"""
	session = _get_session(request, session_id)
	generated = session.state.generated_image
	if generated is None:
		raise HTTPException(status_code=404, detail="No generated image for this session")
	return {
		"content": generated.to_bytes(),
		"media_type": generated.mime_type,
		"filename": "enhanced-profile.png",
	}
