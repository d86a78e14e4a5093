"""ClaudeModelClient — Anthropic Claude vision backend."""
from anthropic import AsyncAnthropic

from chart_analyzer.constants import (
    ANALYSIS_MAX_TOKENS,
    ANALYSIS_TEMPERATURE,
    DEFAULT_MODELS,
    PROVIDER_CLAUDE,
)
from chart_analyzer.encoding import EncodedImage
from chart_analyzer.vision.client import ModelClient


class ClaudeModelClient(ModelClient):

    def __init__(self, api_key: str, model: str = DEFAULT_MODELS[PROVIDER_CLAUDE]) -> None:
        self._client = AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(self, image: EncodedImage, prompt: str) -> str | None:
        # No JSON response mode here; the prompt alone pins the output format.
        message = await self._client.messages.create(
            model=self.model,
            max_tokens=ANALYSIS_MAX_TOKENS,
            temperature=ANALYSIS_TEMPERATURE,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": image.media_type,
                                "data": image.data,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        )
        return "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
