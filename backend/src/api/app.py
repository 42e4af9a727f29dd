# api/app.py
from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.src.api.routes_chat import router as chat_router
from backend.src.core.config import bootstrap_env, load_settings
from backend.src.core.errors import ChatError
from backend.src.core.logging import get_logger
from backend.src.core.runtime import AppRuntime, build_runtime

logger = get_logger("supportchat.api")


def create_app(runtime: Optional[AppRuntime] = None, cors_origins: Optional[list] = None) -> FastAPI:
    """Build the API. Without an injected runtime one is built from env at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        rt = getattr(app.state, "runtime", None)
        if rt is None:
            rt = build_runtime(load_settings())
            app.state.runtime = rt
        rt.start()
        try:
            yield
        finally:
            await rt.shutdown()

    app = FastAPI(title="Support Chat API", lifespan=lifespan)
    if runtime is not None:
        app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"], allow_credentials=False,
        allow_methods=["POST", "GET", "OPTIONS"], allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(ChatError)
    async def _chat_error(request: Request, exc: ChatError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("UNHANDLED_ERROR path=%s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(chat_router, prefix="/api")
    return app


def _app_from_env() -> FastAPI:
    bootstrap_env()
    return create_app(cors_origins=load_settings().cors_origins_list)


app = _app_from_env()
