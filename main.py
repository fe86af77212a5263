import inspect
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from google import genai

from routes.session_route import router as session_router
from services.gemini.image_editor import ImageEditService
from services.image_encoder import ImageEncoder
from services.session_store import SessionStore
from utils.config import load_settings
from utils.errors import ConfigurationError

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

logger = logging.getLogger("photo_editor")


def configure_logging(level: str) -> None:
    """Configure root logging once; later calls only adjust the level."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)


async def _close_client(client) -> None:
    """Close the GenAI client's async and sync transports if it exposes close hooks."""
    aio = getattr(client, "aio", None)
    for closer in (getattr(aio, "aclose", None), getattr(client, "close", None)):
        if closer is None:
            continue
        try:
            result = closer()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            # Shutdown errors must not mask the reason the app is stopping.
            logger.warning("Error while closing GenAI client: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - settings (the Gemini API key is mandatory)
      - the Google GenAI client and the image edit service
      - the image encoder and the in-memory session store
    and attach them to `app.state`.
    """
    # Raises ConfigurationError when GEMINI_API_KEY is missing; the app never starts.
    settings = load_settings()
    configure_logging(settings.log_level)
    app.state.settings = settings

    try:
        genai_client = genai.Client(api_key=settings.gemini_api_key)
    except Exception as exc:
        raise ConfigurationError("Failed to initialize Google GenAI client") from exc

    app.state.genai_client = genai_client
    app.state.image_editor = ImageEditService(genai_client, model=settings.image_model)
    app.state.image_encoder = ImageEncoder(max_bytes=settings.max_upload_bytes)
    app.state.session_store = SessionStore(
        default_instruction=settings.default_instruction,
        ttl_seconds=settings.session_ttl_seconds,
        max_sessions=settings.max_sessions,
    )
    logger.info("Photo editor ready (model=%s)", settings.image_model)

    try:
        yield
    finally:
        client = getattr(app.state, "genai_client", None)
        if client is not None:
            await _close_client(client)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(lifespan=lifespan)

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies the GenAI client and session store are present.
        """
        has_genai = getattr(request.app.state, "genai_client", None) is not None
        store = getattr(request.app.state, "session_store", None)
        return {
            "ok": True,
            "genai_available": has_genai,
            "active_sessions": len(store) if store is not None else 0,
        }

    # Register application routers
    app.include_router(session_router)

    return app


app = create_app()
