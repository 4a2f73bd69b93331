"""FastAPI app entry."""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from pdfproxy.adapters.pdf_proxy.router import router as pdf_proxy_router
from pdfproxy.adapters.pdf_proxy.upstream import close_upstream_async_client
from pdfproxy.config.settings import settings
from pdfproxy.core.static_files import build_static_app
from pdfproxy.util.logger import logger

app = FastAPI(title=settings.app_name)
app.include_router(pdf_proxy_router, prefix=settings.mount_path)


@app.get("/health")
def health() -> dict:
    logger.info("health check")
    return {"status": "ok"}


@app.on_event("startup")
async def startup_log() -> None:
    logger.info(
        "pdf proxy ready mount_path=%s timeout=%ss follow_redirects=%s",
        settings.mount_path,
        settings.upstream_timeout_seconds,
        settings.upstream_follow_redirects,
    )


@app.on_event("shutdown")
async def shutdown_cleanup() -> None:
    await close_upstream_async_client()


# mounted last so the proxy and health routes take precedence over "/"
if settings.static_dir:
    _static_app = build_static_app(settings.static_dir)
    if _static_app is not None:
        app.mount("/", _static_app, name="viewer")


def main() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
