from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class FilterRequest(BaseModel):
    mode: str = Field(..., description="none|grayscale|negative|sharpen")


class CameraStartRequest(BaseModel):
    source: str = Field("device", description="device|droidcam|ipcam")
    url: Optional[str] = Field(None, description="Stream URL, required for ipcam")


class SessionResponse(BaseModel):
    active: bool
    source: Optional[str]
    filter: str
    frame_size: Optional[List[int]] = Field(None, description="[width, height] of the last displayed frame")
    fps: Optional[float] = None
    last_frame_age_s: Optional[float] = None


class FiltersResponse(BaseModel):
    filters: List[str]
    selected: str


class CaptureResponse(BaseModel):
    url: str
    width: int
    height: int
    filter: str
    size_bytes: int


class UploadResponse(BaseModel):
    url: str
