"""Plain-text rendering of an AnalysisRecord for chat transports."""
import re

from chart_analyzer.analysis import AnalysisRecord
from chart_analyzer.constants import ANALYSIS_SECTIONS, MSG_ANALYSIS_EMPTY, TELEGRAM_MESSAGE_LIMIT

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def section_title(key: str) -> str:
    """'volumeAnalysis' -> 'Volume Analysis'."""
    words = _CAMEL_BOUNDARY.sub(" ", key).replace("_", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


def render_analysis(record: AnalysisRecord) -> str:
    match record.is_empty():
        case True:
            return MSG_ANALYSIS_EMPTY
        case False:
            pass
    known = [(title, record.get(key)) for key, title in ANALYSIS_SECTIONS]
    extra = [(section_title(key), text) for key, text in record.extra.items()]
    return "\n\n".join(f"▌{title}\n{text.strip()}" for title, text in known + extra if text)


def split_message(text: str, limit: int = TELEGRAM_MESSAGE_LIMIT) -> list[str]:
    """Split on paragraph boundaries so each chunk fits ``limit``; oversized paragraphs are cut hard."""
    chunks: list[str] = []
    current = ""
    for paragraph in text.split("\n\n"):
        pieces = [paragraph[i:i + limit] for i in range(0, len(paragraph), limit)] or [""]
        for piece in pieces:
            candidate = f"{current}\n\n{piece}" if current else piece
            match len(candidate) <= limit:
                case True:
                    current = candidate
                case False:
                    chunks.append(current)
                    current = piece
    match current:
        case "":
            pass
        case rest:
            chunks.append(rest)
    return chunks
