"""
Configuration Management for StayScout

This module provides centralized configuration management with:
- Environment variable loading (configs/.env)
- Type validation
- Sensible defaults for browser, timing and scheduling knobs
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


_FALSY = {"0", "false", "False"}
_TRUTHY = {"1", "true", "True"}


class Config:
    """
    Application configuration loaded from environment variables.

    All configuration is read from configs/.env file or environment variables.
    """

    def __init__(self, env_path: Optional[Path] = None):
        """
        Initialize configuration from environment.

        Args:
            env_path: Path to .env file (default: configs/.env)
        """
        if env_path is None:
            env_path = Path("configs/.env")

        load_dotenv(dotenv_path=env_path, override=True)

        # === Browser ===
        self.headless: bool = os.getenv("HEADLESS", "1") not in _FALSY
        self.browser_launch_timeout_ms: int = int(os.getenv("BROWSER_LAUNCH_TIMEOUT_MS", "90000"))
        self.browser_launch_retries: int = int(os.getenv("BROWSER_LAUNCH_RETRIES", "2"))
        self.locale: str = os.getenv("LOCALE", "en-us")
        self.currency: str = os.getenv("CURRENCY", "MXN")

        # === Timeouts (per navigation / wait) ===
        self.nav_timeout_ms: int = int(os.getenv("NAV_TIMEOUT_MS", "60000"))
        self.network_idle_timeout_ms: int = int(os.getenv("NETWORK_IDLE_TIMEOUT_MS", "20000"))
        self.selector_timeout_ms: int = int(os.getenv("SELECTOR_TIMEOUT_MS", "15000"))

        # === Scheduling ===
        self.default_concurrency: int = int(os.getenv("DEFAULT_CONCURRENCY", "3"))
        self.max_concurrency: int = int(os.getenv("MAX_CONCURRENCY", "5"))
        self.block_size_days: int = int(os.getenv("BLOCK_SIZE_DAYS", "30"))
        self.max_days: int = int(os.getenv("MAX_DAYS", "90"))
        self.recovery_bound: int = int(os.getenv("RECOVERY_BOUND", "5"))

        # === Lazy loading ===
        self.scroll_steps: int = int(os.getenv("SCROLL_STEPS", "12"))
        self.scroll_pause_ms: int = int(os.getenv("SCROLL_PAUSE_MS", "1200"))

        # === Enrichment ===
        self.enrich_limit: int = int(os.getenv("ENRICH_LIMIT", "15"))
        self.enrich_batch_size: int = int(os.getenv("ENRICH_BATCH_SIZE", "5"))

        # === Caching ===
        self.events_cache_ttl_s: float = float(os.getenv("EVENTS_CACHE_TTL_S", "900"))

        # === Supabase (persistence sink) ===
        self.supabase_enabled: bool = os.getenv("SUPABASE_ENABLED", "1") not in _FALSY
        self.supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
        self.supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.supabase_prices_table: str = os.getenv("SUPABASE_PRICES_TABLE", "hotel_usuario")
        self.supabase_events_table: str = os.getenv("SUPABASE_EVENTS_TABLE", "eventos")

        # === Logging ===
        self.debug: bool = os.getenv("DEBUG", "0") in _TRUTHY
        self.log_level: str = os.getenv("LOG_LEVEL", "WARNING")
        log_dir = os.getenv("LOG_DIR")
        self.log_dir: Optional[Path] = Path(log_dir) if log_dir else None

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        errors = []

        if self.supabase_enabled and self.supabase_url and not self.supabase_service_role_key:
            errors.append("SUPABASE_SERVICE_ROLE_KEY is required when SUPABASE_URL is set")

        for name in ("nav_timeout_ms", "network_idle_timeout_ms", "selector_timeout_ms",
                     "browser_launch_timeout_ms"):
            if getattr(self, name) <= 0:
                errors.append(f"{name.upper()} must be positive, got {getattr(self, name)}")

        if self.default_concurrency < 1:
            errors.append(f"DEFAULT_CONCURRENCY must be >= 1, got {self.default_concurrency}")

        if self.max_concurrency < 1:
            errors.append(f"MAX_CONCURRENCY must be >= 1, got {self.max_concurrency}")

        if self.block_size_days < 1:
            errors.append(f"BLOCK_SIZE_DAYS must be >= 1, got {self.block_size_days}")

        if self.max_days < 1:
            errors.append(f"MAX_DAYS must be >= 1, got {self.max_days}")

        if self.recovery_bound < 0:
            errors.append(f"RECOVERY_BOUND must be non-negative, got {self.recovery_bound}")

        if self.browser_launch_retries < 0:
            errors.append(f"BROWSER_LAUNCH_RETRIES must be non-negative, got {self.browser_launch_retries}")

        if self.scroll_steps < 0:
            errors.append(f"SCROLL_STEPS must be non-negative, got {self.scroll_steps}")

        if self.enrich_batch_size < 1:
            errors.append(f"ENRICH_BATCH_SIZE must be >= 1, got {self.enrich_batch_size}")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    def __repr__(self) -> str:
        """Return string representation of config (without secrets)."""
        return (
            f"Config(\n"
            f"  headless={self.headless},\n"
            f"  locale={self.locale}, currency={self.currency},\n"
            f"  concurrency={self.default_concurrency}/{self.max_concurrency},\n"
            f"  block_size_days={self.block_size_days}, max_days={self.max_days},\n"
            f"  supabase_enabled={self.supabase_enabled},\n"
            f"  supabase_url={self.supabase_url or 'NOT SET'},\n"
            f"  supabase_key={'***' if self.supabase_service_role_key else 'NOT SET'},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )


# Global configuration instance (lazy-loaded)
_config: Optional[Config] = None


def get_config(env_path: Optional[Path] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        env_path: Optional path to .env file (only used on first call)

    Returns:
        Global Config instance
    """
    global _config
    if _config is None:
        _config = Config(env_path=env_path)
    return _config


def validate_config(env_path: Optional[Path] = None) -> None:
    """
    Validate configuration and raise error if invalid.

    Raises:
        ValueError: If configuration is invalid
    """
    config = get_config(env_path=env_path)
    config.validate()
