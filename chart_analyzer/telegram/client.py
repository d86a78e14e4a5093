"""TelegramClient — chart upload front end via python-telegram-bot."""
import logging
import time
from typing import Any, Callable, Optional

from telegram import Message, Update
from telegram.ext import Application, CommandHandler, ContextTypes
from telegram.ext import MessageHandler as TGMessageHandler
from telegram.ext import filters

from chart_analyzer.analysis import AnalysisOrchestrator
from chart_analyzer.bot_client import BotClient
from chart_analyzer.config import Config
from chart_analyzer.constants import (
    CMD_CLEAR_KEY,
    CMD_HELP,
    CMD_KEY,
    CMD_START,
    CMD_STATUS,
    MAX_IMAGE_BYTES,
    MSG_ANALYSIS_DONE,
    MSG_ANALYSIS_FAILED,
    MSG_ANALYSIS_UNEXPECTED,
    MSG_BLOCKED_CHAT,
    MSG_HELP,
    MSG_IMAGE_TOO_LARGE,
    MSG_KEY_CLEARED_REPLY,
    MSG_KEY_SET_OK,
    MSG_KEY_USAGE,
    MSG_NOT_AN_IMAGE,
    MSG_SET_KEY_PROMPT,
    MSG_STATUS,
)
from chart_analyzer.credentials import CredentialManager
from chart_analyzer.encoding import encode_image
from chart_analyzer.errors import ChartAnalysisError
from chart_analyzer.render import render_analysis, split_message
from chart_analyzer.telegram.typing import TelegramTypingIndicator

logger = logging.getLogger(__name__)

# (downloadable attachment, declared size in bytes, declared media type)
ImageAttachment = tuple[Any, Optional[int], Optional[str]]


def error_reply(exc: ChartAnalysisError) -> str:
    """User-facing text for a core error; credential errors also prompt for /key."""
    match exc.requires_credential:
        case True:
            return f"{exc}\n{MSG_SET_KEY_PROMPT}"
        case False:
            return str(exc)


class TelegramClient(BotClient):

    def __init__(
        self,
        config: Config,
        credentials: CredentialManager,
        orchestrator: AnalysisOrchestrator,
    ) -> None:
        self._config = config
        self._token = config.telegram_bot_token
        self._allowed_chat_id = config.allowed_chat_id
        self._credentials = credentials
        self._orchestrator = orchestrator
        self._app: Optional[Application] = None

    # ── BotClient interface ───────────────────────────────────────────────────

    def run(self) -> None:
        self._app = Application.builder().token(self._token).build()
        help_handler = self._make_simple_handler(lambda: MSG_HELP)
        self._app.add_handler(CommandHandler(CMD_START, help_handler))
        self._app.add_handler(CommandHandler(CMD_HELP, help_handler))
        self._app.add_handler(CommandHandler(CMD_STATUS, self._make_simple_handler(self.status_text)))
        self._app.add_handler(CommandHandler(CMD_KEY, self._make_key_handler()))
        self._app.add_handler(CommandHandler(CMD_CLEAR_KEY, self._make_clear_key_handler()))
        self._app.add_handler(
            TGMessageHandler(filters.PHOTO | filters.Document.IMAGE, self._make_image_handler())
        )
        self._app.run_polling()

    async def send_message(self, to: str, text: str) -> bool:
        match self._app:
            case None:
                logger.error("send_message called before run()")
                return False
            case app:
                try:
                    await app.bot.send_message(chat_id=int(to), text=text)
                    return True
                except Exception as exc:
                    logger.error("Telegram send_message failed: %s", exc)
                    return False

    # ── helpers (also used in tests) ─────────────────────────────────────────

    def _is_allowed(self, update: Update) -> bool:
        if update.effective_chat is None:
            return False
        return str(update.effective_chat.id).strip() == self._allowed_chat_id.strip()

    def status_text(self) -> str:
        key_state = "ready" if self._credentials.is_ready() else "not set"
        return MSG_STATUS % (self._config.model_provider, self._config.model_name, key_state)

    @staticmethod
    def _extract_image(message: Optional[Message]) -> Optional[ImageAttachment]:
        """Pick the largest photo size, or an image document, from a message."""
        match message:
            case None:
                return None
            case _:
                pass
        match (message.photo, message.document):
            case (photos, _) if photos:
                largest = photos[-1]
                return (largest, largest.file_size, None)
            case (_, doc) if doc is not None and (doc.mime_type or "").startswith("image/"):
                return (doc, doc.file_size, doc.mime_type)
            case _:
                return None

    def _guard(self, update: Update) -> Optional[str]:
        """Sender chat id when the update comes from the allowed chat, else None."""
        match self._is_allowed(update):
            case False:
                chat_id = update.effective_chat.id if update.effective_chat else "?"
                logger.warning(MSG_BLOCKED_CHAT, chat_id)
                return None
            case True:
                return str(update.effective_chat.id)

    # ── internal handler factory ──────────────────────────────────────────────

    def _make_simple_handler(self, callback: Callable[[], str]) -> Callable:
        """Handler for commands that need no arguments — just call callback and reply."""
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            match self._guard(update):
                case None:
                    return
                case sender:
                    await self.send_message(sender, callback())

        return _handler

    def _make_key_handler(self) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            sender = self._guard(update)
            match sender:
                case None:
                    return
                case _:
                    pass

            secret = " ".join(context.args or [])
            match secret.strip():
                case "":
                    await self.send_message(sender, MSG_KEY_USAGE)
                    return
                case _:
                    pass

            # the key is in the chat history otherwise
            try:
                await update.message.delete()
            except Exception as exc:
                logger.debug("Could not delete /key message: %s", exc)

            try:
                self._credentials.set_credential(secret)
            except ChartAnalysisError as exc:
                await self.send_message(sender, error_reply(exc))
                return
            await self.send_message(sender, MSG_KEY_SET_OK)

        return _handler

    def _make_clear_key_handler(self) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            match self._guard(update):
                case None:
                    return
                case sender:
                    self._credentials.clear_credential()
                    await self.send_message(sender, MSG_KEY_CLEARED_REPLY)

        return _handler

    def _make_image_handler(self) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            sender = self._guard(update)
            match sender:
                case None:
                    return
                case _:
                    pass

            match self._extract_image(update.message):
                case None:
                    await self.send_message(sender, MSG_NOT_AN_IMAGE)
                    return
                case (_, size, _) if size is not None and size > MAX_IMAGE_BYTES:
                    await self.send_message(sender, MSG_IMAGE_TOO_LARGE)
                    return
                case (attachment, _, media_type):
                    pass

            start = time.time()
            try:
                async with TelegramTypingIndicator(context.bot, sender):
                    tg_file = await attachment.get_file()
                    raw = bytes(await tg_file.download_as_bytearray())
                    image = encode_image(raw, media_type)
                    record = await self._orchestrator.analyze_image(image)
            except ChartAnalysisError as exc:
                logger.warning(MSG_ANALYSIS_FAILED, time.time() - start, type(exc).__name__)
                await self.send_message(sender, error_reply(exc))
                return
            except Exception:
                logger.exception("Chart analysis failed")
                await self.send_message(sender, MSG_ANALYSIS_UNEXPECTED)
                return

            logger.info(MSG_ANALYSIS_DONE, time.time() - start)
            for chunk in split_message(render_analysis(record)):
                await self.send_message(sender, chunk)

        return _handler
