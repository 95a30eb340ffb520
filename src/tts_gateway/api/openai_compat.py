"""
OpenAI-Compatible Endpoints.

    POST /v1/audio/speech   - text to speech, audio streamed back
    GET  /v1/models         - Azure voices presented as OpenAI model cards

Unlike OpenAI, ``model`` selects the Azure voice directly
(e.g. "zh-CN-YunxiNeural"); there is no separate ``voice`` field.

Example Usage:
    curl -X POST http://localhost:8000/v1/audio/speech \\
        -H "Authorization: Bearer $TTS_GW_API_KEY" \\
        -H "Content-Type: application/json" \\
        -d '{"model": "zh-CN-XiaoxiaoMultilingualNeural", "input": "你好"}' \\
        --output speech.mp3

Error Responses:
    {"error": {"message": "...", "type": "...", "code": "..."}}
"""
from __future__ import annotations

import random
import time
import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from fastapi.responses import StreamingResponse

from tts_gateway.api.dependencies import get_gateway_service
from tts_gateway.api.errors import gateway_error_response, internal_error_response
from tts_gateway.api.schemas import (
    ModelCard,
    ModelList,
    ModelPermission,
    SpeechRequest,
    VoiceSettings,
)
from tts_gateway.core.errors import GatewayError, InvalidRequestError
from tts_gateway.core.logging import fail, get_logger, warn
from tts_gateway.services.gateway import GatewayService
from tts_gateway.upstream.voices import VoiceDescriptor

router = APIRouter()

_LOG = get_logger("tts-gateway.openai")


@router.post("/v1/audio/speech", response_class=Response)
def openai_speech(
    req: SpeechRequest,
    service: GatewayService = Depends(get_gateway_service),
):
    """
    Synthesize ``input`` with the voice named by ``model``.

    Returns the upstream audio as a stream with the upstream content type.
    With ``download: true`` a Content-Disposition attachment header is added.
    """
    settings = req.voice_settings or VoiceSettings()

    try:
        synth_request = service.build_request(
            text=req.input,
            voice=req.model,
            rate=settings.speed,
            pitch=settings.pitch,
            output_format=settings.output_format,
            download=req.download,
        )
        stream = service.synthesize(synth_request)

    except InvalidRequestError as e:
        warn(_LOG, "speech_rejected", code=e.code)
        return gateway_error_response(e)

    except GatewayError as e:
        fail(_LOG, "speech_failed", code=e.code, upstream_status=e.details.get("upstream_status"))
        return gateway_error_response(e)

    except Exception as e:
        # Don't expose internal details
        fail(_LOG, "speech_internal_error", error=type(e).__name__)
        return internal_error_response()

    return StreamingResponse(
        stream.iter_bytes(),
        media_type=stream.content_type,
        headers=stream.headers(),
    )


def build_model_card(voice: VoiceDescriptor, owned_by: str) -> ModelCard:
    """
    One OpenAI model card per voice.

    ``created`` values are cosmetic; OpenAI clients only display them.
    """
    return ModelCard(
        id=voice.short_name,
        created=int(1600000000 + random.random() * 100000000),
        owned_by=owned_by,
        permission=[
            ModelPermission(
                id=f"modelperm-{uuid.uuid4().hex[:24]}",
                created=int(time.time()),
            )
        ],
        root=voice.short_name,
        parent=None,
    )


@router.get("/v1/models", response_model=ModelList)
def list_models(service: GatewayService = Depends(get_gateway_service)):
    """List available voices as OpenAI models."""
    try:
        voices: List[VoiceDescriptor] = service.list_voices()
    except GatewayError as e:
        fail(_LOG, "models_failed", code=e.code)
        return gateway_error_response(e)
    except Exception as e:
        fail(_LOG, "models_internal_error", error=type(e).__name__)
        return internal_error_response()

    owned_by = service.config.models.owned_by
    return ModelList(data=[build_model_card(v, owned_by) for v in voices])
