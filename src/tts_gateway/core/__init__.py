"""
Core Infrastructure for tts-gateway.

This package provides foundational components:
    - config.py: Configuration loading and validation
    - errors.py: Error taxonomy and the OpenAI error envelope
    - logging/: Structured logging with numeric levels
    - metrics.py: Prometheus metrics collection
"""
