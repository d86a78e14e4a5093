"""GeminiModelClient — Google Gemini backend."""
from google import genai
from google.genai import types

from chart_analyzer.constants import (
    ANALYSIS_TEMPERATURE,
    DEFAULT_MODELS,
    JSON_MIME_TYPE,
    PROVIDER_GEMINI,
)
from chart_analyzer.encoding import EncodedImage
from chart_analyzer.vision.client import ModelClient


class GeminiModelClient(ModelClient):

    def __init__(self, api_key: str, model: str = DEFAULT_MODELS[PROVIDER_GEMINI]) -> None:
        self._client = genai.Client(api_key=api_key)
        self.model = model

    async def generate(self, image: EncodedImage, prompt: str) -> str | None:
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=[
                types.Part.from_bytes(data=image.to_bytes(), mime_type=image.media_type),
                types.Part(text=prompt),
            ],
            config=types.GenerateContentConfig(
                response_mime_type=JSON_MIME_TYPE,
                temperature=ANALYSIS_TEMPERATURE,
            ),
        )
        return response.text
