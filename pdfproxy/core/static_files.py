"""Viewer asset serving with single-page-app history fallback."""

from __future__ import annotations

from pathlib import Path

from starlette.exceptions import HTTPException
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

from pdfproxy.util.logger import get_logger

INDEX_FILE = "index.html"

logger = get_logger("static")


class HistoryFallbackStaticFiles(StaticFiles):
    """Serve files from a build directory; unknown paths get index.html."""

    async def get_response(self, path: str, scope: Scope):
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404:
                raise
            logger.debug("static history fallback path=%s", path)
            return await super().get_response(INDEX_FILE, scope)


def build_static_app(static_dir: str) -> HistoryFallbackStaticFiles | None:
    directory = Path(static_dir).expanduser()
    if not directory.is_dir():
        logger.warning("static_dir not found, viewer assets disabled path=%s", directory)
        return None
    return HistoryFallbackStaticFiles(directory=directory, html=True)
