"""FastAPI routes for edit sessions."""

from typing import Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from controllers.session_controller import (
	discard_session,
	download_result,
	generate,
	get_session,
	reset_session,
	select_image,
	start_session,
	update_instruction,
)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class InstructionPayload(BaseModel):
	instruction: str


class GeneratePayload(BaseModel):
	instruction: Optional[str] = None


@router.post("")
async def start_session_route(request: Request):
	try:
		return await start_session(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return await get_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def discard_session_route(request: Request, session_id: str):
	try:
		return await discard_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/image", summary="Select the source photo")
async def select_image_route(request: Request, session_id: str, image: UploadFile = File(...)):
	"""Encode the uploaded photo and make it the session's source image."""
	try:
		return await select_image(request, session_id, image)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/{session_id}/instruction")
async def update_instruction_route(request: Request, session_id: str, payload: InstructionPayload):
	try:
		return await update_instruction(request, session_id, payload.instruction)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/generate", summary="Edit the source photo")
async def generate_route(request: Request, session_id: str, payload: Optional[GeneratePayload] = None):
	"""Run one edit; failures come back as phase ERROR with an error message."""
	try:
		return await generate(request, session_id, payload.instruction if payload else None)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/reset")
async def reset_session_route(request: Request, session_id: str):
	try:
		return await reset_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}/result")
async def download_result_route(request: Request, session_id: str):
	"""Return the generated PNG as a file download."""
	try:
		result = await download_result(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
	return Response(
		content=result["content"],
		media_type=result["media_type"],
		headers={"Content-Disposition": f'attachment; filename="{result["filename"]}"'},
	)
