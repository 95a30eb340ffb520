"""
Configuration Management for tts-gateway.

Settings come from one YAML file, are overlaid with environment variables,
and are then validated into typed section dataclasses (auth, credentials,
upstream, voices, tts, models, logging). Anything missing falls back to
Defaults. A missing settings file is not an error; the gateway then runs
on defaults alone.

Configuration Hierarchy (highest priority first):
    1. Environment variables (TTS_GW_API_KEY, TTS_GW_LOG_LEVEL, etc.)
    2. YAML config file (TTS_GW_SETTINGS or config/settings.yaml)
    3. Defaults class values

Example settings.yaml:
    auth:
      api_key: "change-me"

    credentials:
      refresh_margin_s: 60

    voices:
      cache_ttl_seconds: 600

    tts:
      default_voice: zh-CN-XiaoxiaoMultilingualNeural
      default_output_format: audio-24khz-48kbitrate-mono-mp3

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import os
import yaml

DEFAULT_SETTINGS_PATH = "config/settings.yaml"


class ConfigValidationError(Exception):
    """Raised when a configuration value is out of bounds or of the wrong type."""
    pass


class Defaults:
    """
    Centralized default configuration values.

    Values here are used whenever neither the YAML file nor the
    environment provides an override.
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Inbound authentication
    # ─────────────────────────────────────────────────────────────────────────
    AUTH_API_KEY: Optional[str] = None      # None = open gateway

    # ─────────────────────────────────────────────────────────────────────────
    # Upstream credential cache
    # ─────────────────────────────────────────────────────────────────────────
    CREDENTIALS_REFRESH_MARGIN_S = 60       # Refresh this long before token exp

    # ─────────────────────────────────────────────────────────────────────────
    # Upstream HTTP transport
    # ─────────────────────────────────────────────────────────────────────────
    UPSTREAM_TIMEOUT_S: Optional[float] = None  # None = httpx default

    # ─────────────────────────────────────────────────────────────────────────
    # Voice catalog
    # ─────────────────────────────────────────────────────────────────────────
    VOICES_CACHE_TTL_SECONDS = 600          # Catalog cache lifetime (10 min)

    # ─────────────────────────────────────────────────────────────────────────
    # Synthesis defaults
    # ─────────────────────────────────────────────────────────────────────────
    TTS_DEFAULT_VOICE = "zh-CN-XiaoxiaoMultilingualNeural"
    TTS_DEFAULT_OUTPUT_FORMAT = "audio-24khz-48kbitrate-mono-mp3"
    TTS_DEFAULT_RATE = 0                    # Percent relative to normal
    TTS_DEFAULT_PITCH = 0                   # Percent relative to normal

    # ─────────────────────────────────────────────────────────────────────────
    # /v1/models presentation
    # ─────────────────────────────────────────────────────────────────────────
    MODELS_OWNED_BY = "Zwei"

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 80         # Characters to show in text preview
    LOGGING_LEVEL = 2                       # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG


@dataclass
class AuthConfig:
    """Inbound bearer-key gate. An empty or missing key disables the gate."""
    api_key: Optional[str] = Defaults.AUTH_API_KEY


@dataclass
class CredentialsConfig:
    """Upstream token cache policy."""
    refresh_margin_s: int = Defaults.CREDENTIALS_REFRESH_MARGIN_S


@dataclass
class UpstreamConfig:
    """HTTP transport settings shared by all upstream calls."""
    timeout_s: Optional[float] = Defaults.UPSTREAM_TIMEOUT_S


@dataclass
class VoicesConfig:
    """Voice catalog caching."""
    cache_ttl_seconds: int = Defaults.VOICES_CACHE_TTL_SECONDS


@dataclass
class SynthesisConfig:
    """Defaults applied to speech requests that omit a field."""
    default_voice: str = Defaults.TTS_DEFAULT_VOICE
    default_output_format: str = Defaults.TTS_DEFAULT_OUTPUT_FORMAT


@dataclass
class ModelsConfig:
    """Presentation of voices as OpenAI model cards."""
    owned_by: str = Defaults.MODELS_OWNED_BY


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, errors only
        2 = NORMAL: Request lifecycle, credential refreshes (default)
        3 = VERBOSE: Upstream call timing, cache decisions
        4 = DEBUG: Full request text and SSML
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class GatewayConfig:
    """
    Validated configuration for GatewayService.

    Usage:
        settings = load_settings()
        config = GatewayConfig.from_settings(settings)
        print(config.credentials.refresh_margin_s)
    """
    auth: AuthConfig = field(default_factory=AuthConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    voices: VoicesConfig = field(default_factory=VoicesConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    models: ModelsConfig = field(default_factory=ModelsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "GatewayConfig":
        """
        Create GatewayConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated GatewayConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        auth = AuthConfig(api_key=settings.api_key)

        # ─────────────────────────────────────────────────────────────────────
        # Credentials
        # ─────────────────────────────────────────────────────────────────────
        cred_raw = raw.get("credentials", {}) or {}
        credentials = CredentialsConfig(
            refresh_margin_s=int(cred_raw.get("refresh_margin_s", Defaults.CREDENTIALS_REFRESH_MARGIN_S)),
        )
        cls._validate_non_negative("credentials.refresh_margin_s", credentials.refresh_margin_s)

        # ─────────────────────────────────────────────────────────────────────
        # Upstream transport
        # ─────────────────────────────────────────────────────────────────────
        upstream_raw = raw.get("upstream", {}) or {}
        timeout_raw = upstream_raw.get("timeout_s", Defaults.UPSTREAM_TIMEOUT_S)
        upstream = UpstreamConfig(
            timeout_s=float(timeout_raw) if timeout_raw is not None else None,
        )
        if upstream.timeout_s is not None:
            cls._validate_positive("upstream.timeout_s", upstream.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Voice catalog
        # ─────────────────────────────────────────────────────────────────────
        voices_raw = raw.get("voices", {}) or {}
        voices = VoicesConfig(
            cache_ttl_seconds=int(voices_raw.get("cache_ttl_seconds", Defaults.VOICES_CACHE_TTL_SECONDS)),
        )
        cls._validate_non_negative("voices.cache_ttl_seconds", voices.cache_ttl_seconds)

        # ─────────────────────────────────────────────────────────────────────
        # Synthesis defaults
        # ─────────────────────────────────────────────────────────────────────
        synthesis = SynthesisConfig(
            default_voice=settings.default_voice,
            default_output_format=settings.default_output_format,
        )
        cls._validate_not_empty("tts.default_voice", synthesis.default_voice)
        cls._validate_not_empty("tts.default_output_format", synthesis.default_output_format)

        models_raw = raw.get("models", {}) or {}
        models = ModelsConfig(owned_by=str(models_raw.get("owned_by", Defaults.MODELS_OWNED_BY)))

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # Handle string log levels (e.g., "INFO", "DEBUG")
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            auth=auth,
            credentials=credentials,
            upstream=upstream,
            voices=voices,
            synthesis=synthesis,
            models=models,
            logging=logging_cfg,
        )

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")

    @staticmethod
    def _validate_not_empty(name: str, value: str) -> None:
        if not value or not str(value).strip():
            raise ConfigValidationError(f"{name} must not be empty")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_gateway_config() to get the validated GatewayConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    @property
    def api_key(self) -> Optional[str]:
        """Deployment API key; empty strings count as unset."""
        key = (self.raw.get("auth", {}) or {}).get("api_key", Defaults.AUTH_API_KEY)
        return str(key) if key else None

    @property
    def default_voice(self) -> str:
        """Voice used when a request omits ``model``."""
        return str((self.raw.get("tts", {}) or {}).get("default_voice", Defaults.TTS_DEFAULT_VOICE))

    @property
    def default_output_format(self) -> str:
        """Upstream output format used when a request omits one."""
        return str((self.raw.get("tts", {}) or {}).get(
            "default_output_format", Defaults.TTS_DEFAULT_OUTPUT_FORMAT))

    def get_gateway_config(self) -> GatewayConfig:
        """
        Get validated GatewayConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return GatewayConfig.from_settings(self)


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from a YAML configuration file.

    The path defaults to ``TTS_GW_SETTINGS`` or ``config/settings.yaml``.
    A missing default file yields pure defaults; a missing file that was
    asked for explicitly is an error.

    Environment variable overrides:
        - TTS_GW_API_KEY: Override auth.api_key

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If an explicitly requested file doesn't exist.
        ConfigValidationError: If the file is not valid YAML or its top
            level is not a mapping.
    """
    explicit = path is not None or os.getenv("TTS_GW_SETTINGS") is not None
    p = Path(path or os.getenv("TTS_GW_SETTINGS") or DEFAULT_SETTINGS_PATH)

    raw: Dict[str, Any] = {}
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigValidationError(f"settings file {p} is not valid YAML: {e}") from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigValidationError(
                f"settings file {p} must contain a mapping, got {type(loaded).__name__}"
            )
        raw = loaded or {}
    elif explicit:
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    # Apply environment variable overrides
    api_key = os.getenv("TTS_GW_API_KEY")
    if api_key:
        if not isinstance(raw.get("auth"), dict):
            raw["auth"] = {}
        raw["auth"]["api_key"] = api_key

    return Settings(raw=raw)
