"""AnalysisOrchestrator — one chart image in, one AnalysisRecord out."""
import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from chart_analyzer.constants import (
    ANALYSIS_PROMPT,
    AUTH_REJECTED_SIGNALS,
    ERR_AUTH_REJECTED,
    ERR_EMPTY_RESPONSE,
    ERR_IN_PROGRESS,
    ERR_MALFORMED,
    ERR_NOT_AUTHENTICATED,
    ERR_QUOTA,
    ERR_TIMEOUT,
    ERR_TRANSPORT,
    MALFORMED_EXCERPT_CHARS,
    QUOTA_SIGNAL,
)
from chart_analyzer.credentials import CredentialManager
from chart_analyzer.encoding import EncodedImage
from chart_analyzer.errors import (
    AnalysisInProgress,
    ChartAnalysisError,
    EmptyResponse,
    MalformedAnalysis,
    NotAuthenticated,
    QuotaExceeded,
    RemoteAuthRejected,
    TransportFailure,
)
from chart_analyzer.vision.client import ModelClient

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

# wire key -> AnalysisRecord attribute
_KNOWN_KEYS = {
    "resistanceSupport": "resistance_support",
    "trends": "trends",
    "chartPatterns": "chart_patterns",
    "candlestickPatterns": "candlestick_patterns",
    "volumeAnalysis": "volume_analysis",
    "momentum": "momentum",
}


# ── record ────────────────────────────────────────────────────────────────────


def _as_text(value: Any) -> str | None:
    match value:
        case None:
            return None
        case str() as s:
            return s if s.strip() else None
        case other:
            return json.dumps(other)


@dataclass(frozen=True)
class AnalysisRecord:
    """Per-category analysis text. Missing categories are None; unknown keys land in ``extra``."""

    resistance_support: str | None = None
    trends: str | None = None
    chart_patterns: str | None = None
    candlestick_patterns: str | None = None
    volume_analysis: str | None = None
    momentum: str | None = None
    extra: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AnalysisRecord":
        texts = {k: t for k, v in data.items() if (t := _as_text(v)) is not None}
        known = {_KNOWN_KEYS[k]: v for k, v in texts.items() if k in _KNOWN_KEYS}
        extra = {k: v for k, v in texts.items() if k not in _KNOWN_KEYS}
        return cls(**known, extra=extra)

    def get(self, key: str) -> str | None:
        """Look up a category by its wire key."""
        match _KNOWN_KEYS.get(key):
            case None:
                return self.extra.get(key)
            case attr:
                return getattr(self, attr)

    def to_dict(self) -> dict[str, str]:
        known = {
            key: value
            for key, attr in _KNOWN_KEYS.items()
            if (value := getattr(self, attr)) is not None
        }
        return {**known, **self.extra}

    def is_empty(self) -> bool:
        return not self.to_dict()


# ── pure helpers (module-level so tests can import them directly) ──────────────


def strip_code_fence(text: str) -> str:
    """Return the inner region of a ```lang ... ``` block, or the trimmed text unchanged."""
    stripped = text.strip()
    match _FENCE.match(stripped):
        case m if m and m.group(2):
            return m.group(2).strip()
        case _:
            return stripped


def parse_analysis_text(text: str | None) -> AnalysisRecord:
    match (text or "").strip():
        case "":
            raise EmptyResponse(ERR_EMPTY_RESPONSE)
        case _:
            pass

    try:
        parsed = json.loads(strip_code_fence(text))
    except (json.JSONDecodeError, RecursionError) as exc:
        logger.error("Failed to parse JSON response: %s", exc)
        logger.debug("Raw response text: %s", text)
        raise _malformed(text) from exc

    match parsed:
        case dict():
            return AnalysisRecord.from_mapping(parsed)
        case _:
            logger.error("JSON response is not an object: %s", type(parsed).__name__)
            raise _malformed(text)


def _malformed(text: str) -> MalformedAnalysis:
    excerpt = text[:MALFORMED_EXCERPT_CHARS] + "..."
    return MalformedAnalysis(ERR_MALFORMED % excerpt, excerpt=excerpt)


def classify_remote_error(exc: BaseException) -> ChartAnalysisError:
    """Heuristic mapping of a backend exception onto the error taxonomy.

    Providers expose no stable error codes across SDKs, so this matches on the
    message text: an auth phrase wins over a quota phrase, everything else is a
    transport failure. Wording changes upstream silently degrade to
    TransportFailure.
    """
    match exc:
        case ChartAnalysisError():
            return exc
        case asyncio.TimeoutError():
            return TransportFailure(ERR_TRANSPORT % (str(exc) or "timeout"))
        case _:
            pass

    message = str(exc)
    lowered = message.lower()
    match lowered:
        case m if any(signal in m for signal in AUTH_REJECTED_SIGNALS):
            return RemoteAuthRejected(ERR_AUTH_REJECTED)
        case m if QUOTA_SIGNAL in m:
            return QuotaExceeded(ERR_QUOTA % message)
        case _:
            return TransportFailure(ERR_TRANSPORT % (message or type(exc).__name__))


# ── orchestrator ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RequestPolicy:
    """Per-call limits. The defaults mean one attempt and no timeout of our own."""

    timeout: float | None = None
    attempts: int = 1


class AnalysisOrchestrator:
    """Runs one request/response cycle against the CredentialManager's live client."""

    def __init__(self, credentials: CredentialManager, policy: RequestPolicy = RequestPolicy()) -> None:
        self._credentials = credentials
        self._policy = policy
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def analyze(self, image_data: str, media_type: str) -> AnalysisRecord:
        client = self._require_client()
        match self._in_flight:
            case True:
                raise AnalysisInProgress(ERR_IN_PROGRESS)
            case False:
                pass

        image = EncodedImage(data=image_data, media_type=media_type)
        self._in_flight = True
        try:
            text = await self._send(client, image)
        finally:
            self._in_flight = False
        return parse_analysis_text(text)

    async def analyze_image(self, image: EncodedImage) -> AnalysisRecord:
        return await self.analyze(image.data, image.media_type)

    def _require_client(self) -> ModelClient:
        match self._credentials.client:
            case None:
                # the client may never have been built this session
                self._credentials.load_from_storage()
            case _:
                pass
        match self._credentials.client:
            case None:
                raise NotAuthenticated(ERR_NOT_AUTHENTICATED)
            case client:
                return client

    async def _send(self, client: ModelClient, image: EncodedImage) -> str | None:
        attempt = 1
        while True:
            try:
                return await self._call_once(client, image)
            except TransportFailure as exc:
                match attempt < self._policy.attempts:
                    case True:
                        logger.warning("Attempt %d/%d failed: %s", attempt, self._policy.attempts, exc)
                        attempt += 1
                    case False:
                        raise

    async def _call_once(self, client: ModelClient, image: EncodedImage) -> str | None:
        logger.info("Calling %s…", client.model)
        try:
            return await self._generate(client, image)
        except ChartAnalysisError:
            raise
        except Exception as exc:
            logger.error("Error calling model: %s", exc)
            error = classify_remote_error(exc)
            match error:
                case RemoteAuthRejected():
                    self._credentials.invalidate()
                case _:
                    pass
            raise error from exc

    async def _generate(self, client: ModelClient, image: EncodedImage) -> str | None:
        match self._policy.timeout:
            case None:
                return await client.generate(image, ANALYSIS_PROMPT)
            case seconds:
                try:
                    return await asyncio.wait_for(
                        client.generate(image, ANALYSIS_PROMPT), timeout=seconds
                    )
                except asyncio.TimeoutError as exc:
                    logger.error("Model call timed out after %ss", seconds)
                    raise TransportFailure(ERR_TRANSPORT % (ERR_TIMEOUT % seconds)) from exc
