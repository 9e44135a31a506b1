from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import uvicorn
from pydantic import BaseModel, Field

from agent.agent import respond
from agent.tools import list_available_models
from config.settings import get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("chatbot")

app = FastAPI(title="AI Chatbot Backend", version="1.0.0")

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-clerk-auth-token"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


@app.exception_handler(404)
async def not_found(request: Request, exc: Exception) -> JSONResponse:
    detail = getattr(exc, "detail", None)
    if detail and detail != "Not Found":
        return JSONResponse(status_code=404, content={"detail": detail})
    return JSONResponse(
        status_code=404,
        content={"error": "Route not found", "path": request.url.path, "method": request.method},
    )


@app.exception_handler(Exception)
async def server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Server error: %s", exc)
    development = get_settings().app_env.lower() in {"dev", "development", "local"}
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if development else "An error occurred",
        },
    )


class ChatTurn(BaseModel):
    role: str = Field(..., description="'user' or 'assistant'")
    content: str


class ChatRequest(BaseModel):
    client_id: str = Field(..., description="Unique identifier for user/session")
    query: str = Field(..., description="User's latest message")
    conversation_history: Optional[List[ChatTurn]] = Field(
        default_factory=list,
        description="Recent turns including both user and assistant messages (frontend-managed)",
    )


@app.post("/agent/chat")
def chat(req: ChatRequest) -> Dict[str, Any]:
    settings = get_settings()
    if not settings.google_api_key:
        raise HTTPException(
            status_code=500,
            detail="Missing GOOGLE_API_KEY in environment or .env",
        )
    if not req.query.strip():
        raise HTTPException(status_code=422, detail="query must not be empty")

    logger.info(
        "Incoming chat: client_id=%s model=%s history_turns=%s",
        req.client_id,
        settings.gemini_model,
        len(req.conversation_history or []),
    )
    result = respond(req.query, [t.model_dump() for t in (req.conversation_history or [])])
    output_text = (result.get("output") or "").strip()
    error_text = result.get("error")

    if error_text:
        logger.warning("Model call reported error: %s", error_text)
        fallback = output_text or "I couldn't answer that just now, please try again shortly."
        clean_error = " ".join(str(error_text).split())[:500]
        return {"ai_response": fallback, "error": clean_error}

    logger.info("Model responded with %s chars", len(output_text))
    return {"ai_response": output_text}


@app.get("/api/models")
def models() -> Dict[str, Any]:
    try:
        names = list_available_models()
    except RuntimeError as exc:
        logger.warning("Model listing failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
    return {"models": names}


@app.get("/api/test")
def api_test() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "message": "Backend API is working",
        "geminiKey": "Configured" if settings.google_api_key else "Missing",
        "model": settings.gemini_model,
        "environment": settings.app_env,
    }


@app.get("/health")
def health():
    return {
        "status": "OK",
        "message": "AI Chatbot Backend is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": get_settings().app_env,
    }


def run() -> None:
    logger.info("Starting server on port %s (health check: http://localhost:%s/health)", settings.port, settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
