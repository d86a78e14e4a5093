"""Entry point — wires Config → SecretStore → CredentialManager → AnalysisOrchestrator → TelegramClient."""
import logging
from functools import partial
from pathlib import Path

from rich.logging import RichHandler

from chart_analyzer.analysis import AnalysisOrchestrator, RequestPolicy
from chart_analyzer.config import Config
from chart_analyzer import constants
from chart_analyzer.constants import MSG_BOT_STARTING, MSG_NO_STORED_KEY
from chart_analyzer.credentials import CredentialManager
from chart_analyzer.secret_store import SecretStore
from chart_analyzer.telegram.client import TelegramClient
from chart_analyzer.vision.client import ClientFactory


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


def make_client_factory(provider: str, model: str) -> ClientFactory:
    """Backend constructor for ``provider`` bound to ``model``; SDKs are imported lazily."""
    match provider:
        case constants.PROVIDER_GEMINI:
            from chart_analyzer.vision.gemini import GeminiModelClient
            return partial(GeminiModelClient, model=model)
        case constants.PROVIDER_CLAUDE:
            from chart_analyzer.vision.claude import ClaudeModelClient
            return partial(ClaudeModelClient, model=model)
        case constants.PROVIDER_OPENAI:
            from chart_analyzer.vision.openai import OpenAIModelClient
            return partial(OpenAIModelClient, model=model)
        case _:
            raise ValueError(f"Unknown model provider: {provider}")


def main() -> None:
    config = Config.from_env()
    _setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info(MSG_BOT_STARTING)

    credentials = CredentialManager(
        SecretStore(Path(config.secret_store_path)),
        make_client_factory(config.model_provider, config.model_name),
    )
    match credentials.load_from_storage():
        case None:
            logger.info(MSG_NO_STORED_KEY)
        case _:
            pass
    orchestrator = AnalysisOrchestrator(
        credentials,
        RequestPolicy(timeout=config.request_timeout, attempts=config.request_attempts),
    )
    client = TelegramClient(config, credentials, orchestrator)
    client.run()


if __name__ == "__main__":
    main()
