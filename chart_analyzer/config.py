from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from chart_analyzer.constants import (
    DEFAULT_MODELS,
    DEFAULT_PROVIDER,
    DEFAULT_SECRET_STORE_PATH,
)


@dataclass(frozen=True)
class Config:
    telegram_bot_token: str
    allowed_chat_id: str
    log_level: str
    model_provider: str
    model_name: str
    secret_store_path: str
    request_timeout: Optional[float]
    request_attempts: int

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        token = os.getenv("TELEGRAM_BOT_TOKEN")
        chat_id = os.getenv("ALLOWED_CHAT_ID")
        log_level = os.getenv("LOG_LEVEL", "INFO")
        provider = os.getenv("MODEL_PROVIDER", DEFAULT_PROVIDER).strip().lower()
        model_name = os.getenv("MODEL_NAME") or None
        store_path = os.getenv("SECRET_STORE_PATH") or DEFAULT_SECRET_STORE_PATH
        raw_timeout = os.getenv("REQUEST_TIMEOUT", "").strip()
        raw_attempts = os.getenv("REQUEST_ATTEMPTS", "1")

        return cls._validate(
            telegram_bot_token=token,
            allowed_chat_id=chat_id,
            log_level=log_level,
            model_provider=provider,
            model_name=model_name,
            secret_store_path=store_path,
            request_timeout=float(raw_timeout) if raw_timeout else None,
            request_attempts=int(raw_attempts),
        )

    @staticmethod
    def _validate(
        telegram_bot_token: Optional[str],
        allowed_chat_id: Optional[str],
        log_level: str,
        model_provider: str,
        model_name: Optional[str],
        secret_store_path: str,
        request_timeout: Optional[float],
        request_attempts: int,
    ) -> "Config":
        match telegram_bot_token:
            case None | "":
                raise ValueError("TELEGRAM_BOT_TOKEN must be set in .env")
            case _:
                pass

        match allowed_chat_id:
            case None | "":
                raise ValueError("ALLOWED_CHAT_ID must be set in .env")
            case _:
                pass

        match model_provider:
            case p if p in DEFAULT_MODELS:
                pass
            case p:
                raise ValueError(
                    f"MODEL_PROVIDER must be one of {', '.join(DEFAULT_MODELS)}, got {p!r}"
                )

        match (request_timeout, request_attempts):
            case (t, _) if t is not None and t <= 0:
                raise ValueError("REQUEST_TIMEOUT must be positive")
            case (_, n) if n < 1:
                raise ValueError("REQUEST_ATTEMPTS must be at least 1")
            case _:
                pass

        return Config(
            telegram_bot_token=telegram_bot_token,
            allowed_chat_id=allowed_chat_id,
            log_level=log_level,
            model_provider=model_provider,
            model_name=model_name or DEFAULT_MODELS[model_provider],
            secret_store_path=secret_store_path,
            request_timeout=request_timeout,
            request_attempts=request_attempts,
        )
