"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

A single cached Settings instance is shared across the overlay renderer,
the decode pipeline, the scanner session and the HTTP surface.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Overlay style selection (sweeping line vs pulsing laser, corner ratio)
- Decode format allow-list and encode defaults

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from viewfinder.codec.models import BarcodeFormat, check_character_set


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        cors_origins: Allowed CORS origins (JSON array string)
        indicator_mode: Scan indicator style ("sweep" or "pulse")
        laser_visible: Draw the scan indicator at all
        corner_ratio: Corner bracket leg = rectangle dimension // ratio
        corner_stroke_width: Corner bracket stroke width in pixels
        mask_alpha: Opacity of the darkened area outside the framing rect
        result_alpha: Opacity of the darkened area while frozen
        framing_margin_fraction: Margin around the square framing rect
        offset_top: Vertical framing override (-1 = unset)
        max_repaint_fps: Upper bound on continuous repaint rate
        decode_formats: Allowed decode formats (JSON array string)
        decode_try_harder: Spend more time per decode attempt
        character_set: Character set hint for encode/decode
        default_code_size: Default generated image side in pixels
        default_margin: Default quiet zone in modules
        default_error_correction: Default error correction level
        camera_index: OpenCV camera device index

    Example:
        >>> settings = Settings()
        >>> print(settings.indicator_mode)
        'sweep'
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Viewfinder Scanner API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=True,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # OVERLAY SETTINGS
    # =========================================================================
    indicator_mode: str = Field(
        default="sweep",
        description="Scan indicator style: sweep or pulse"
    )

    laser_visible: bool = Field(
        default=True,
        description="Draw the scan line / laser"
    )

    corner_ratio: int = Field(
        default=8,
        description="Corner bracket leg length divisor (4 or 8)"
    )

    corner_stroke_width: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Corner bracket stroke width in pixels"
    )

    mask_alpha: int = Field(
        default=0x60,
        ge=0,
        le=255,
        description="Opacity of the mask outside the framing rect"
    )

    result_alpha: int = Field(
        default=0xB0,
        ge=0,
        le=255,
        description="Opacity of the mask while a result is frozen"
    )

    framing_margin_fraction: float = Field(
        default=0.125,
        ge=0.0,
        lt=0.5,
        description="Margin around the framing square, as a fraction of the short side"
    )

    offset_top: int = Field(
        default=-1,
        ge=-1,
        description="Vertical framing rect override (-1 = unset)"
    )

    max_repaint_fps: float = Field(
        default=60.0,
        gt=0.0,
        le=240.0,
        description="Upper bound on continuous repaint rate"
    )

    # =========================================================================
    # CODEC SETTINGS
    # =========================================================================
    decode_formats: str = Field(
        default="[]",
        description="Allowed decode formats as JSON array string (empty = all)"
    )

    decode_try_harder: bool = Field(
        default=True,
        description="Try rotated and downscaled variants while decoding"
    )

    character_set: str = Field(
        default="utf-8",
        description="Character set hint for the codec"
    )

    default_code_size: int = Field(
        default=150,
        ge=21,
        le=4096,
        description="Default generated barcode image side in pixels"
    )

    default_margin: int = Field(
        default=1,
        ge=0,
        le=32,
        description="Default quiet zone width in modules"
    )

    default_error_correction: str = Field(
        default="H",
        description="Default error correction level: L, M, Q or H"
    )

    # =========================================================================
    # SCANNER SETTINGS
    # =========================================================================
    camera_index: int = Field(
        default=0,
        ge=0,
        description="OpenCV camera device index"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Args:
            value: Raw environment value

        Returns:
            Lowercase normalized environment name
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("indicator_mode")
    @classmethod
    def validate_indicator_mode(cls, value: str) -> str:
        """
        Validate the scan indicator style.

        Raises:
            ValueError: If the mode is not sweep or pulse
        """
        normalized = value.lower().strip()
        if normalized not in {"sweep", "pulse"}:
            raise ValueError(
                f"Unsupported indicator mode: {value}. Supported: sweep, pulse"
            )
        return normalized

    @field_validator("corner_ratio")
    @classmethod
    def validate_corner_ratio(cls, value: int) -> int:
        """
        Validate corner bracket proportion.

        Raises:
            ValueError: If ratio is neither 4 nor 8
        """
        if value not in (4, 8):
            raise ValueError(f"Unsupported corner ratio: {value}. Supported: 4, 8")
        return value

    @field_validator("default_error_correction")
    @classmethod
    def validate_error_correction(cls, value: str) -> str:
        """Validate the default error correction level."""
        normalized = value.upper().strip()
        if normalized not in {"L", "M", "Q", "H"}:
            raise ValueError(
                f"Unsupported error correction level: {value}. Supported: L, M, Q, H"
            )
        return normalized

    @field_validator("decode_formats")
    @classmethod
    def validate_decode_formats(cls, value: str) -> str:
        """
        Validate the decode allow-list and normalize names to upper case.

        Raises:
            ValueError: If the value is not a JSON array of known format names
        """
        try:
            names = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid decode formats JSON: {value}") from e
        if not isinstance(names, list):
            raise ValueError(f"Decode formats must be a JSON array, got: {value}")

        supported = {fmt.value for fmt in BarcodeFormat}
        normalized = [str(name).upper().strip() for name in names]
        unknown = [name for name in normalized if name not in supported]
        if unknown:
            raise ValueError(
                f"Unsupported decode formats: {', '.join(unknown)}. "
                f"Supported: {', '.join(sorted(supported))}"
            )
        return json.dumps(normalized)

    @field_validator("character_set")
    @classmethod
    def validate_character_set(cls, value: str) -> str:
        """Validate the codec character set against Python's codec registry."""
        return check_character_set(value)

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    @property
    def decode_format_names(self) -> List[str]:
        """
        Parse decode formats from JSON string to list.

        Returns:
            List of format names; empty means every supported format
        """
        return json.loads(self.decode_formats)

    @property
    def min_repaint_interval(self) -> float:
        """Minimum seconds between two scheduled repaints."""
        return 1.0 / self.max_repaint_fps

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"indicator_mode={self.indicator_mode!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Returns:
        Global Settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.corner_ratio)
        8
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
