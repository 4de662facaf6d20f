import logging
import warnings

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Environment
    environment: str = "development"  # development | test | production

    # Server
    sosiol_host: str = "0.0.0.0"
    sosiol_port: int = 3000

    # Database (sqlite for local dev, postgresql+asyncpg for production)
    database_url: str = "sqlite+aiosqlite:///./data/sosiol.db"

    # Uploads (local HashFS)
    upload_store_path: str = "./data/uploads"
    upload_max_bytes: int = 5 * 1024 * 1024  # 5MB

    # Solana
    solana_network: str = "mainnet-beta"
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    # Comma-separated, tried in order after solana_rpc_url when fetching a blockhash
    solana_fallback_rpc_urls: str = (
        "https://solana-mainnet.g.alchemy.com/v2/demo,"
        "https://rpc.ankr.com/solana"
    )
    solana_rpc_timeout_seconds: float = 10.0
    usdc_mint_address: str = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

    # Blockhash acquisition
    blockhash_cache_ttl_seconds: float = 30.0
    blockhash_retry_delay_seconds: float = 2.0
    blockhash_final_retry_delay_seconds: float = 5.0
    solana_sandbox_mode: bool = False  # substitute a placeholder blockhash when every RPC fails

    # Tips
    tip_verification_mode: str = "trust"  # trust | onchain

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Rate Limiting
    rest_rate_limit_per_minute: int = 120  # req/min per client IP
    rest_write_rate_limit_per_minute: int = 20  # profile saves, tip records and uploads per IP

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def blockhash_endpoints(self) -> list[str]:
        """Primary RPC URL followed by the fallbacks, without duplicates."""
        urls = [self.solana_rpc_url]
        urls.extend(u.strip() for u in self.solana_fallback_rpc_urls.split(","))
        endpoints: list[str] = []
        for url in urls:
            if url and url not in endpoints:
                endpoints.append(url)
        return endpoints


settings = Settings()

# Warn on insecure defaults (logged at startup, not a hard error for dev convenience)
_logger = logging.getLogger("sosiol.config")
_TIP_VERIFICATION_MODES = {"trust", "onchain"}


def validate_security_posture(cfg: Settings) -> None:
    is_prod = cfg.environment.lower() in {"production", "prod"}

    if cfg.cors_origins == "*":
        if is_prod:
            raise RuntimeError(
                "FATAL: CORS_ORIGINS cannot be '*' in production. "
                "Set explicit trusted origins via the CORS_ORIGINS environment variable."
            )
        _logger.warning(
            "CORS_ORIGINS is set to '*' (allow all). "
            "Configure specific origins for production via the CORS_ORIGINS environment variable."
        )

    if cfg.solana_sandbox_mode:
        if is_prod:
            raise RuntimeError(
                "FATAL: SOLANA_SANDBOX_MODE must be disabled in production. "
                "A placeholder blockhash would be handed to real wallets."
            )
        warnings.warn(
            "SOLANA_SANDBOX_MODE is enabled. Transfers fall back to a placeholder "
            "blockhash when every RPC endpoint fails; use only for local testing.",
            stacklevel=1,
        )

    if cfg.tip_verification_mode not in _TIP_VERIFICATION_MODES:
        raise RuntimeError(
            f"FATAL: TIP_VERIFICATION_MODE must be one of {sorted(_TIP_VERIFICATION_MODES)}, "
            f"got '{cfg.tip_verification_mode}'."
        )


validate_security_posture(settings)
