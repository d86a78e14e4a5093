"""CredentialManager — owns the API key and the model client built from it."""
import logging

from chart_analyzer.constants import (
    ERR_CLIENT_CONSTRUCTION,
    ERR_EMPTY_KEY,
    MSG_KEY_CLEARED,
    MSG_KEY_LOAD_FAILED,
    MSG_KEY_LOADED,
    MSG_KEY_SAVED,
    SECRET_STORAGE_KEY,
)
from chart_analyzer.errors import ClientConstructionFailed, InvalidInput
from chart_analyzer.secret_store import SecretStore
from chart_analyzer.vision.client import ClientFactory, ModelClient

logger = logging.getLogger(__name__)


class CredentialManager:
    """Single writer of the live ModelClient.

    States: no client (not ready) or one live client (ready). The persisted key
    survives construction failures so a user can retry without retyping it.
    """

    def __init__(self, store: SecretStore, client_factory: ClientFactory) -> None:
        self._store = store
        self._factory = client_factory
        self._client: ModelClient | None = None

    @property
    def client(self) -> ModelClient | None:
        return self._client

    def is_ready(self) -> bool:
        return self._client is not None

    def get_persisted_credential(self) -> str | None:
        return self._store.get(SECRET_STORAGE_KEY)

    def set_credential(self, secret: str) -> None:
        key = (secret or "").strip()
        match key:
            case "":
                self._client = None
                self._store.remove(SECRET_STORAGE_KEY)
                logger.warning("API key removed or empty")
                raise InvalidInput(ERR_EMPTY_KEY)
            case _:
                pass

        try:
            client = self._factory(key)
        except Exception as exc:
            self._client = None
            logger.error("Failed to initialize model client with the provided key: %s", exc)
            raise ClientConstructionFailed(ERR_CLIENT_CONSTRUCTION % exc) from exc

        self._store.set(SECRET_STORAGE_KEY, key)
        self._client = client
        logger.info(MSG_KEY_SAVED)

    def load_from_storage(self) -> str | None:
        """Rebuild the client from the stored key; returns that key even if the build fails."""
        stored = self._store.get(SECRET_STORAGE_KEY)
        match stored:
            case None | "":
                self._client = None
                return None
            case key:
                try:
                    self._client = self._factory(key)
                    logger.info(MSG_KEY_LOADED)
                except Exception as exc:
                    self._client = None
                    logger.warning(MSG_KEY_LOAD_FAILED, exc)
                return key

    def invalidate(self) -> None:
        """Drop the live client after the remote service rejected its key."""
        self._client = None

    def clear_credential(self) -> None:
        self._client = None
        self._store.remove(SECRET_STORAGE_KEY)
        logger.info(MSG_KEY_CLEARED)
