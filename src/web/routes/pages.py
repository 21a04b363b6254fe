"""
Static shell routes.

Files under the static directory are served at the site root; any other GET
falls back to index.html so the client can handle its own routing.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse

router = APIRouter()


def _static_root(request: Request) -> Path:
    return Path(request.app.state.static_dir).resolve()


def _serve_index(root: Path):
    index_file = root / "index.html"
    if index_file.exists():
        return FileResponse(index_file)
    return HTMLResponse(
        content="<h1>Shell not found</h1><p>Expected index.html in the static directory.</p>",
        status_code=503,
    )


@router.get("/", response_class=HTMLResponse)
def index(request: Request):
    return _serve_index(_static_root(request))


@router.get("/{full_path:path}")
def static_or_index(request: Request, full_path: str):
    if full_path.startswith("api/"):
        return JSONResponse({"detail": "Not found"}, status_code=404)

    root = _static_root(request)
    candidate = (root / full_path).resolve()
    if candidate.is_file() and root in candidate.parents:
        return FileResponse(candidate)
    return _serve_index(root)
