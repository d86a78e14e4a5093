"""ModelClient — abstract base for multimodal model backends."""
from abc import ABC, abstractmethod
from typing import Callable

from chart_analyzer.encoding import EncodedImage


class ModelClient(ABC):
    """Authenticated handle on a remote model, built from exactly one API key.

    Constructors must fail synchronously when the SDK rejects the key.
    """

    model: str

    @abstractmethod
    async def generate(self, image: EncodedImage, prompt: str) -> str | None:
        """Send image + prompt in one request (JSON output, low temperature). Raises on failure."""
        ...


# api key -> live client; raises when the key is rejected up front
ClientFactory = Callable[[str], ModelClient]
