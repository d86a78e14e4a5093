"""All magic values live here — no inline literals anywhere else."""

# Telegram typing indicator re-send interval (seconds).
# The TYPING action expires after ~5 s, so we refresh every 4 s.
TELEGRAM_TYPING_INTERVAL: float = 4.0
TELEGRAM_MESSAGE_LIMIT = 4096

# Persisted secret
DEFAULT_SECRET_STORE_PATH = ".chart_analyzer_key.json"
SECRET_STORAGE_KEY = "geminiApiKey_aiChartAnalyzer"

# Model backends
PROVIDER_GEMINI = "gemini"
PROVIDER_CLAUDE = "claude"
PROVIDER_OPENAI = "openai"
DEFAULT_PROVIDER = PROVIDER_GEMINI
DEFAULT_MODELS = {
    PROVIDER_GEMINI: "gemini-2.5-flash",
    PROVIDER_CLAUDE: "claude-sonnet-4-5-20250929",
    PROVIDER_OPENAI: "gpt-4o",
}
ANALYSIS_TEMPERATURE: float = 0.3
ANALYSIS_MAX_TOKENS = 2048
JSON_MIME_TYPE = "application/json"

# Images
DEFAULT_IMAGE_MEDIA_TYPE = "image/jpeg"
MAX_IMAGE_BYTES = 10 * 1024 * 1024
MALFORMED_EXCERPT_CHARS = 200

# Reply keys → section titles, in display order
ANALYSIS_SECTIONS = (
    ("resistanceSupport", "Resistance & Support"),
    ("trends", "Trends"),
    ("chartPatterns", "Chart Patterns"),
    ("candlestickPatterns", "Candlestick Patterns"),
    ("volumeAnalysis", "Volume Analysis"),
    ("momentum", "Momentum"),
)

ANALYSIS_PROMPT = """
Analyze the provided financial chart image. Provide a detailed analysis for each of the following categories.
Respond strictly in JSON format with the following keys: 'resistanceSupport', 'trends', 'chartPatterns', 'candlestickPatterns', 'volumeAnalysis', 'momentum'.

Each key should have a string value containing the analysis. For example:
{
  "resistanceSupport": "Price shows strong resistance near $100 and support around $90. A key support zone is identified at the 50-day moving average.",
  "trends": "The chart indicates a primary uptrend, confirmed by higher highs and higher lows. A short-term consolidation phase is currently observed.",
  "chartPatterns": "A bullish flag pattern appears to be forming, suggesting a potential continuation of the uptrend upon a breakout.",
  "candlestickPatterns": "A series of doji candles near the recent high suggests indecision. A bullish engulfing pattern was observed 3 periods ago, indicating strong buying pressure at that level.",
  "volumeAnalysis": "Volume has been decreasing during the consolidation phase, which is typical for a flag pattern. A surge in volume on breakout would confirm the pattern.",
  "momentum": "RSI (Relative Strength Index) is above 50, indicating bullish momentum, but it has been declining, suggesting a potential weakening of the uptrend or an upcoming pullback."
}

Ensure the entire response is a single valid JSON object. Do not use markdown like ```json.
"""

# Remote error signals (matched case-insensitively against the error message)
AUTH_REJECTED_SIGNALS = ("api key not valid", "invalid api key")
QUOTA_SIGNAL = "quota"

# Log messages
MSG_BOT_STARTING = "Starting chart analyzer bot…"
MSG_BLOCKED_CHAT = "Blocked update from chat_id: %s"
MSG_KEY_SAVED = "API key set and client initialized"
MSG_KEY_LOADED = "API key loaded from storage and client initialized"
MSG_KEY_LOAD_FAILED = "Stored API key could not initialize the client: %s"
MSG_KEY_CLEARED = "API key cleared from service and storage"
MSG_NO_STORED_KEY = "No stored API key — waiting for /key"
MSG_ANALYSIS_DONE = "✓ Analysis complete (%.1fs)"
MSG_ANALYSIS_FAILED = "✗ Analysis failed (%.1fs): %s"

# Error texts
ERR_EMPTY_KEY = "API key cannot be empty."
ERR_CLIENT_CONSTRUCTION = "Invalid API Key or failed to initialize model client: %s"
ERR_NOT_AUTHENTICATED = "Model client is not initialized. Please set your API key."
ERR_IN_PROGRESS = "An analysis is already running — wait for it to finish."
ERR_EMPTY_RESPONSE = "Received an empty response from the AI."
ERR_MALFORMED = "Failed to parse analysis data from AI. Raw response: %s"
ERR_AUTH_REJECTED = "Invalid API Key. Please check your key and set it again."
ERR_QUOTA = "Request failed due to quota limits: %s"
ERR_TRANSPORT = "Error analyzing chart: %s"
ERR_TIMEOUT = "request timed out after %ss"

# Bot replies
CMD_START = "start"
CMD_HELP = "help"
CMD_KEY = "key"
CMD_CLEAR_KEY = "clearkey"
CMD_STATUS = "status"
MSG_KEY_USAGE = "Usage: /key <your-api-key>"
MSG_KEY_SET_OK = "API key set successfully and client initialized."
MSG_KEY_CLEARED_REPLY = "API key cleared. Send /key <your-api-key> to set a new one."
MSG_SET_KEY_PROMPT = "Send /key <your-api-key> to continue."
MSG_IMAGE_TOO_LARGE = "Image is too large — please keep it under 10 MB."
MSG_NOT_AN_IMAGE = "Please send a chart image (PNG, JPG, GIF or WEBP)."
MSG_ANALYSIS_UNEXPECTED = "Could not analyze chart — please try again."
MSG_ANALYSIS_EMPTY = "The model returned no analysis for this chart."
MSG_STATUS = (
    "Status\n"
    "  Provider : %s\n"
    "  Model    : %s\n"
    "  API key  : %s\n"
)

MSG_HELP = (
    "AI Chart Analyzer — technical analysis for chart screenshots\n"
    "\n"
    "Commands:\n"
    "  /help                 — show this message\n"
    "  /key <api-key>        — set the model API key\n"
    "  /clearkey             — forget the stored API key\n"
    "  /status               — provider, model and key state\n"
    "\n"
    "Send a chart as a photo or image file (max 10 MB) to get:\n"
    "  resistance & support, trends, chart patterns,\n"
    "  candlestick patterns, volume analysis and momentum.\n"
)
