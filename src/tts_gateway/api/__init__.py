"""
FastAPI REST API Layer for tts-gateway.

    - openai_compat.py: /v1/audio/speech and /v1/models
    - routes.py: /health and /metrics
    - middleware.py: CORS, API-key gate, request id
    - errors.py: OpenAI error envelope and exception handlers
    - schemas.py: Pydantic request/response models
    - dependencies.py: FastAPI dependency injection
"""
