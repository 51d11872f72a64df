# backend/app.py

import logging

from fastapi import FastAPI, HTTPException

from config.settings import settings, configure_logging
from .composer import GenerationError, generate
from .model import ComposeRequest, ComposeResponse, HealthResponse

configure_logging()
logger = logging.getLogger(__name__)

if not settings.GEMINI_API_KEY:
    # Vẫn cho chạy, request sẽ lỗi khi gọi Gemini
    logger.error("GEMINI_API_KEY environment variable is missing.")

app = FastAPI(title="Lumina Studio Composition Service")


@app.post("/compose", response_model=ComposeResponse)
async def compose(req: ComposeRequest):
    try:
        image = await generate(req.backdrop, req.asset, req.config)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ComposeResponse(image=image)


@app.get("/healthz", response_model=HealthResponse)
async def healthz():
    return HealthResponse(
        status="ok",
        model=settings.GEMINI_MODEL,
        api_key_configured=bool(settings.GEMINI_API_KEY),
    )
