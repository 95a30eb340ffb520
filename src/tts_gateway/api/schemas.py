"""
API Request/Response Schemas.

Models:
    VoiceSettings / SpeechRequest: body of POST /v1/audio/speech
    ModelPermission / ModelCard / ModelList: body of GET /v1/models

Example Request:
    {
        "model": "zh-CN-XiaoxiaoMultilingualNeural",
        "input": "你好，世界",
        "voice_settings": {"speed": 10, "pitch": 0},
        "download": false
    }

``input`` is optional at the schema level so that a missing value reaches
the service and is reported as ``invalid_input`` like an empty one.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class VoiceSettings(BaseModel):
    """
    Prosody and format options. Each omitted field takes its own default.

    Attributes:
        speed: Rate adjustment in percent (0 = normal).
        pitch: Pitch adjustment in percent (0 = normal).
        output_format: Upstream output format; None uses the configured one.
    """
    speed: Optional[float] = Field(default=0, description="Rate adjustment, percent.")
    pitch: Optional[float] = Field(default=0, description="Pitch adjustment, percent.")
    output_format: Optional[str] = Field(
        default=None,
        description="X-Microsoft-OutputFormat, e.g. audio-24khz-48kbitrate-mono-mp3.",
    )


class SpeechRequest(BaseModel):
    model: Optional[str] = Field(default=None, description="Voice short name.")
    input: Optional[str] = Field(default=None, description="Text to speak.")
    voice_settings: Optional[VoiceSettings] = None
    download: bool = Field(default=False, description="Return as an attachment.")


class ModelPermission(BaseModel):
    id: str
    object: str = "model_permission"
    created: int
    allow_create_engine: bool = False
    allow_sampling: bool = False
    allow_logprobs: bool = False
    allow_search_indices: bool = False
    allow_view: bool = True
    allow_fine_tuning: bool = False
    organization: str = "*"
    group: Optional[str] = None
    is_blocking: bool = False


class ModelCard(BaseModel):
    id: str
    object: str = "model"
    created: int
    owned_by: str
    permission: List[ModelPermission]
    root: str
    parent: Optional[str] = None


class ModelList(BaseModel):
    object: str = "list"
    data: List[ModelCard]
