"""
Configuration module for the NearMatch proximity service.

Loads environment variables and provides configuration singletons.
Uses pydantic for validation.
"""

from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All values come from .env file or system environment.
    Type hints provide validation (pydantic converts types automatically).
    """

    # ============================================================
    # PROXIMITY CONFIGURATION
    # ============================================================
    DEFAULT_RADIUS_KM: float = 5.0
    """Search radius used when a request does not provide one. Default: 5 km."""

    MAX_RADIUS_KM: float = 50.0
    """Largest radius a caller may request. Larger values are capped."""

    MIN_MOVE_KM: float = 0.1
    """Location changes smaller than this do not trigger a nearby refresh."""

    # ============================================================
    # RANKING CONFIGURATION
    # ============================================================
    MAX_RESULTS: int = 20
    """Maximum users or places returned by a graph. Default: 20."""

    MIN_SIMILARITY: float = 0.0
    """Nearby users scoring below this similarity are dropped. Range 0-1."""

    # ============================================================
    # GRAPH CONFIGURATION
    # ============================================================
    GRAPH_TIMEOUT: int = 30
    """Maximum seconds a graph can run before timeout. Default: 30 seconds."""

    # ============================================================
    # SECURITY CONFIGURATION
    # ============================================================
    SERVICE_TOKEN: str = ""
    """Shared secret for authenticating requests from the app backend. Empty disables the check."""

    # ============================================================
    # SERVER CONFIGURATION
    # ============================================================
    PORT: int = 8000
    """Port to run FastAPI server on. Default: 8000."""

    HOST: str = "0.0.0.0"
    """Host to bind to. 0.0.0.0 = accessible from network."""

    DEBUG: bool = False
    """Enable debug logging. Set True for development, False for production."""

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# ============================================================
# SINGLETON INSTANCE
# ============================================================
config = Config()


# ============================================================
# VALIDATION AT STARTUP
# ============================================================
def validate_config() -> dict:
    """
    Validate that config values are consistent.

    Called at app startup to fail fast if config is unusable.

    Returns:
        dict: Status of each checked setting

    Raises:
        ValueError: If any setting is out of range
    """
    errors = []

    if config.DEFAULT_RADIUS_KM <= 0:
        errors.append("DEFAULT_RADIUS_KM must be positive")

    if config.MAX_RADIUS_KM <= 0:
        errors.append("MAX_RADIUS_KM must be positive")
    elif config.DEFAULT_RADIUS_KM > config.MAX_RADIUS_KM:
        errors.append("DEFAULT_RADIUS_KM cannot exceed MAX_RADIUS_KM")

    if config.MIN_MOVE_KM < 0:
        errors.append("MIN_MOVE_KM cannot be negative")

    if not 0.0 <= config.MIN_SIMILARITY <= 1.0:
        errors.append("MIN_SIMILARITY must be between 0 and 1")

    if config.MAX_RESULTS <= 0:
        errors.append("MAX_RESULTS must be positive")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join([f"  - {e}" for e in errors]))

    return {
        "radius": f"{config.DEFAULT_RADIUS_KM} km (max {config.MAX_RADIUS_KM} km)",
        "min_move": f"{config.MIN_MOVE_KM} km",
        "ranking": f"top {config.MAX_RESULTS}, min similarity {config.MIN_SIMILARITY}",
        "auth": "✓ Token required" if config.SERVICE_TOKEN else "✗ Disabled",
    }


if __name__ == "__main__":
    """Allow testing config by running: python -m nearmatch.config"""
    try:
        status = validate_config()
        print("✅ Configuration is valid!")
        print("\nConfiguration Status:")
        for key, value in status.items():
            print(f"  {key}: {value}")
    except ValueError as e:
        print(f"❌ Configuration error:\n{e}")
        exit(1)
