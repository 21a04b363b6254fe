"""
Request dependencies exposing the objects wired into app.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from cloud.uploader import Uploader
from pipeline.capture import CaptureService
from runtime.context import Session


def get_session(request: Request) -> Session:
    return request.app.state.session


def get_uploader(request: Request) -> Optional[Uploader]:
    return getattr(request.app.state, "uploader", None)


def get_capture_service(request: Request) -> Optional[CaptureService]:
    return getattr(request.app.state, "capture_service", None)
