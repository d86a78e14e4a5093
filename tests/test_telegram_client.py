import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from chart_analyzer.analysis import AnalysisRecord
from chart_analyzer.config import Config
from chart_analyzer.constants import (
    MAX_IMAGE_BYTES,
    MSG_ANALYSIS_UNEXPECTED,
    MSG_HELP,
    MSG_IMAGE_TOO_LARGE,
    MSG_KEY_CLEARED_REPLY,
    MSG_KEY_SET_OK,
    MSG_KEY_USAGE,
    MSG_NOT_AN_IMAGE,
    MSG_SET_KEY_PROMPT,
)
from chart_analyzer.errors import (
    ClientConstructionFailed,
    NotAuthenticated,
    QuotaExceeded,
    RemoteAuthRejected,
)
from chart_analyzer.telegram.client import TelegramClient, error_reply

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


def make_config(*, chat_id: str = "123456789") -> Config:
    return Config(
        telegram_bot_token="test-token",
        allowed_chat_id=chat_id,
        log_level="INFO",
        model_provider="gemini",
        model_name="gemini-2.5-flash",
        secret_store_path=".key.json",
        request_timeout=None,
        request_attempts=1,
    )


def make_client(*, chat_id: str = "123456789"):
    credentials = MagicMock()
    orchestrator = MagicMock()
    orchestrator.analyze_image = AsyncMock()
    return TelegramClient(make_config(chat_id=chat_id), credentials, orchestrator), credentials, orchestrator


def make_update(*, chat_id: int = 123456789) -> MagicMock:
    """Build a minimal mock of a python-telegram-bot Update."""
    update = MagicMock()
    update.effective_chat.id = chat_id
    update.message.delete = AsyncMock()
    update.message.photo = []
    update.message.document = None
    return update


def make_photo_update(raw: bytes = PNG, *, file_size: int | None = None) -> MagicMock:
    update = make_update()
    tg_file = MagicMock()
    tg_file.download_as_bytearray = AsyncMock(return_value=bytearray(raw))
    photo = MagicMock()
    photo.file_size = len(raw) if file_size is None else file_size
    photo.get_file = AsyncMock(return_value=tg_file)
    update.message.photo = [MagicMock(), photo]
    return update


# ── allowed-chat filter ───────────────────────────────────────────────────────


def test_allowed_chat_id_passes_filter():
    client, _, _ = make_client(chat_id="123456789")
    assert client._is_allowed(make_update(chat_id=123456789))


def test_blocked_chat_id_fails_filter():
    client, _, _ = make_client(chat_id="123456789")
    assert not client._is_allowed(make_update(chat_id=999999999))


def test_negative_group_chat_id_is_not_confused_with_positive():
    client, _, _ = make_client(chat_id="-100123")
    assert client._is_allowed(make_update(chat_id=-100123))
    assert not client._is_allowed(make_update(chat_id=100123))


async def test_blocked_chat_gets_no_reply():
    client, credentials, _ = make_client()
    context = MagicMock(args=["secret"])

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_key_handler()(make_update(chat_id=42), context)

    mock_send.assert_not_called()
    credentials.set_credential.assert_not_called()


# ── error replies ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize("error", [NotAuthenticated("no key"), RemoteAuthRejected("bad key")])
def test_credential_errors_prompt_for_key(error):
    assert error_reply(error).endswith(MSG_SET_KEY_PROMPT)


def test_other_errors_reply_with_message_only():
    assert error_reply(QuotaExceeded("quota hit")) == "quota hit"


# ── /key, /clearkey, /status ──────────────────────────────────────────────────


async def test_key_command_sets_credential_and_deletes_message():
    client, credentials, _ = make_client()
    update = make_update()

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_key_handler()(update, MagicMock(args=["AIza-secret"]))

    credentials.set_credential.assert_called_once_with("AIza-secret")
    update.message.delete.assert_awaited_once()
    mock_send.assert_called_once_with("123456789", MSG_KEY_SET_OK)


async def test_key_command_without_argument_shows_usage():
    client, credentials, _ = make_client()

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_key_handler()(make_update(), MagicMock(args=[]))

    credentials.set_credential.assert_not_called()
    mock_send.assert_called_once_with("123456789", MSG_KEY_USAGE)


async def test_key_command_reports_construction_failure():
    client, credentials, _ = make_client()
    credentials.set_credential.side_effect = ClientConstructionFailed("Invalid API Key: boom")

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_key_handler()(make_update(), MagicMock(args=["bad"]))

    mock_send.assert_called_once_with("123456789", "Invalid API Key: boom")


async def test_key_command_survives_failed_delete():
    client, credentials, _ = make_client()
    update = make_update()
    update.message.delete = AsyncMock(side_effect=RuntimeError("no rights"))

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_key_handler()(update, MagicMock(args=["k"]))

    credentials.set_credential.assert_called_once_with("k")
    mock_send.assert_called_once_with("123456789", MSG_KEY_SET_OK)


async def test_clear_key_command():
    client, credentials, _ = make_client()

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_clear_key_handler()(make_update(), MagicMock())

    credentials.clear_credential.assert_called_once()
    mock_send.assert_called_once_with("123456789", MSG_KEY_CLEARED_REPLY)


def test_status_text_reflects_readiness():
    client, credentials, _ = make_client()
    credentials.is_ready.return_value = False
    assert "not set" in client.status_text()
    credentials.is_ready.return_value = True
    assert "ready" in client.status_text()
    assert "gemini-2.5-flash" in client.status_text()


async def test_help_handler_sends_help():
    client, _, _ = make_client()

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_simple_handler(lambda: MSG_HELP)(make_update(), MagicMock())

    mock_send.assert_called_once_with("123456789", MSG_HELP)


def test_help_text_mentions_key_command():
    assert "/key" in MSG_HELP


# ── image extraction ──────────────────────────────────────────────────────────


def test_extract_image_prefers_largest_photo():
    update = make_photo_update()
    attachment, size, media_type = TelegramClient._extract_image(update.message)
    assert attachment is update.message.photo[-1]
    assert size == len(PNG)
    assert media_type is None


def test_extract_image_accepts_image_document():
    update = make_update()
    update.message.document = MagicMock(mime_type="image/webp", file_size=10)
    attachment, size, media_type = TelegramClient._extract_image(update.message)
    assert attachment is update.message.document
    assert media_type == "image/webp"


def test_extract_image_rejects_other_documents():
    update = make_update()
    update.message.document = MagicMock(mime_type="application/pdf", file_size=10)
    assert TelegramClient._extract_image(update.message) is None


# ── photo → analysis ──────────────────────────────────────────────────────────


async def test_photo_is_encoded_analyzed_and_rendered():
    client, _, orchestrator = make_client()
    orchestrator.analyze_image.return_value = AnalysisRecord(trends="Primary uptrend")

    with patch("chart_analyzer.telegram.client.TelegramTypingIndicator"), \
            patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_image_handler()(make_photo_update(), MagicMock())

    image = orchestrator.analyze_image.call_args.args[0]
    assert image.media_type == "image/png"
    assert image.to_bytes().startswith(b"\x89PNG")
    reply = mock_send.call_args.args[1]
    assert "Trends" in reply
    assert "Primary uptrend" in reply


async def test_photo_analysis_error_is_mapped():
    client, _, orchestrator = make_client()
    orchestrator.analyze_image.side_effect = RemoteAuthRejected("Invalid API Key.")

    with patch("chart_analyzer.telegram.client.TelegramTypingIndicator"), \
            patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_image_handler()(make_photo_update(), MagicMock())

    mock_send.assert_called_once_with("123456789", f"Invalid API Key.\n{MSG_SET_KEY_PROMPT}")


async def test_photo_unexpected_error_sends_generic_reply():
    client, _, orchestrator = make_client()
    orchestrator.analyze_image.side_effect = RuntimeError("boom")

    with patch("chart_analyzer.telegram.client.TelegramTypingIndicator"), \
            patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_image_handler()(make_photo_update(), MagicMock())

    mock_send.assert_called_once_with("123456789", MSG_ANALYSIS_UNEXPECTED)


async def test_oversized_photo_is_rejected_before_download():
    client, _, orchestrator = make_client()
    update = make_photo_update(file_size=MAX_IMAGE_BYTES + 1)

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_image_handler()(update, MagicMock())

    mock_send.assert_called_once_with("123456789", MSG_IMAGE_TOO_LARGE)
    update.message.photo[-1].get_file.assert_not_called()
    orchestrator.analyze_image.assert_not_called()


async def test_non_image_message_is_rejected():
    client, _, orchestrator = make_client()

    with patch.object(client, "send_message", new_callable=AsyncMock) as mock_send:
        await client._make_image_handler()(make_update(), MagicMock())

    mock_send.assert_called_once_with("123456789", MSG_NOT_AN_IMAGE)
    orchestrator.analyze_image.assert_not_called()


# ── send_message ──────────────────────────────────────────────────────────────


async def test_send_message_before_run_fails():
    client, _, _ = make_client()
    assert await client.send_message("123456789", "hi") is False


# ── typing indicator ──────────────────────────────────────────────────────────


async def test_typing_indicator_sends_action_until_stopped():
    from chart_analyzer.telegram.typing import TelegramTypingIndicator

    bot = MagicMock()
    bot.send_chat_action = AsyncMock()

    async with TelegramTypingIndicator(bot, "123456789") as indicator:
        await asyncio.sleep(0)
        assert indicator._task is not None

    bot.send_chat_action.assert_awaited()
    assert bot.send_chat_action.call_args.kwargs["chat_id"] == 123456789
    assert indicator._task is None
