"""OpenAIModelClient — OpenAI GPT-4o vision backend."""
from openai import AsyncOpenAI

from chart_analyzer.constants import ANALYSIS_TEMPERATURE, DEFAULT_MODELS, PROVIDER_OPENAI
from chart_analyzer.encoding import EncodedImage
from chart_analyzer.vision.client import ModelClient


class OpenAIModelClient(ModelClient):

    def __init__(self, api_key: str, model: str = DEFAULT_MODELS[PROVIDER_OPENAI]) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(self, image: EncodedImage, prompt: str) -> str | None:
        response = await self._client.chat.completions.create(
            model=self.model,
            temperature=ANALYSIS_TEMPERATURE,
            response_format={"type": "json_object"},
            messages=[
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{image.media_type};base64,{image.data}"},
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        )
        return response.choices[0].message.content
