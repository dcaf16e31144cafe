"""Telegram bot interface for the Brainwash workout assistant."""

import logging
import sys

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from telegram import Update, Voice
from telegram.error import NetworkError
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from .config import config
from .core import MessageHandler as BrainwashHandler
from .voice import TranscriptionFailedError, VoiceTranscriber

logger = logging.getLogger(__name__)

APOLOGY = "Couldn't process that, try again in a sec."


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(NetworkError),
    reraise=True,
)
async def download_voice(voice: Voice) -> bytes:
    """Fetch a voice note's audio from Telegram."""
    voice_file = await voice.get_file()
    return bytes(await voice_file.download_as_bytearray())


class BrainwashBot:
    """Telegram bot that routes text and voice messages through the shared handler."""

    def __init__(self) -> None:
        self._handler = BrainwashHandler()
        self._transcriber = VoiceTranscriber()
        self._allowed_users: set[int] = set()
        if config.telegram.allowed_user_ids:
            self._allowed_users = set(config.telegram.allowed_user_ids)

    def _is_allowed(self, user_id: int | None) -> bool:
        if not self._allowed_users:
            return True  # no restriction configured
        return user_id in self._allowed_users

    def _user_id(self, update: Update) -> int | None:
        user = update.effective_user
        if user is None or not self._is_allowed(user.id):
            return None
        return user.id

    async def _on_start(self, update: Update, _: ContextTypes.DEFAULT_TYPE) -> None:
        if self._user_id(update) is None:
            return
        await update.message.reply_text(
            "Brainwash here. Tell me a set, e.g. 'log 15 reps of push ups', or send a voice note."
        )

    async def _on_today(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user_id = self._user_id(update)
        if user_id is None:
            return
        day_key = context.args[0] if context.args else None
        try:
            response = await self._handler.today_summary(user_id, day_key)
        except ValueError as e:
            response = str(e)
        except Exception:
            logger.exception("Error building day summary for %s", user_id)
            response = APOLOGY
        await update.message.reply_text(response)

    async def _on_stats(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user_id = self._user_id(update)
        if user_id is None:
            return
        weeks = int(context.args[0]) if context.args and context.args[0].isdigit() else None
        try:
            response = await self._handler.stats_summary(user_id, weeks)
        except ValueError as e:
            response = str(e)
        except Exception:
            logger.exception("Error building stats for %s", user_id)
            response = APOLOGY
        await update.message.reply_text(response)

    async def _on_undo(self, update: Update, _: ContextTypes.DEFAULT_TYPE) -> None:
        user_id = self._user_id(update)
        if user_id is None:
            return
        try:
            response = await self._handler.undo_last(user_id)
        except Exception:
            logger.exception("Error undoing last set for %s", user_id)
            response = APOLOGY
        await update.message.reply_text(response)

    async def _reply_to(self, update: Update, user_id: int, text: str) -> None:
        try:
            reply = await self._handler.process(text, user_id)
            response = reply.text
        except Exception:
            logger.exception("Error processing message from %s", user_id)
            response = APOLOGY
        await update.message.reply_text(response)

    async def _on_message(self, update: Update, _: ContextTypes.DEFAULT_TYPE) -> None:
        if not update.message or not update.message.text:
            return
        user_id = self._user_id(update)
        if user_id is None:
            return

        text = update.message.text.strip()
        if not text:
            return
        await self._reply_to(update, user_id, text)

    async def _on_voice(self, update: Update, _: ContextTypes.DEFAULT_TYPE) -> None:
        if not update.message or not update.message.voice:
            return
        user_id = self._user_id(update)
        if user_id is None:
            return

        voice = update.message.voice
        try:
            audio = await download_voice(voice)
            transcription = await self._transcriber.transcribe(
                audio, "voice.ogg", voice.mime_type or "audio/ogg"
            )
        except TranscriptionFailedError:
            await update.message.reply_text("Sorry, I couldn't understand that voice note.")
            return
        except Exception:
            logger.exception("Error downloading voice message from %s", user_id)
            await update.message.reply_text(APOLOGY)
            return

        await update.message.reply_text(f'Heard: "{transcription.text}"')
        await self._reply_to(update, user_id, transcription.text)

    async def _post_init(self, app: Application) -> None:
        await self._handler.initialize()
        logger.info("Brainwash bot initialized (DB + LLM ready)")

    async def _post_shutdown(self, app: Application) -> None:
        await self._transcriber.close()
        await self._handler.close()
        logger.info("Brainwash bot shut down")

    def run(self) -> None:
        if not config.telegram.token:
            print("TELEGRAM__TOKEN not set in .env")
            sys.exit(1)

        app = (
            Application.builder()
            .token(config.telegram.token)
            .post_init(self._post_init)
            .post_shutdown(self._post_shutdown)
            .build()
        )

        app.add_handler(CommandHandler("start", self._on_start))
        app.add_handler(CommandHandler("today", self._on_today))
        app.add_handler(CommandHandler("stats", self._on_stats))
        app.add_handler(CommandHandler("undo", self._on_undo))
        app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self._on_message))
        app.add_handler(MessageHandler(filters.VOICE, self._on_voice))

        logger.info("Starting Brainwash bot (polling)...")
        app.run_polling()


def main() -> None:
    logging.basicConfig(
        level=config.logging.level,
        format=config.logging.format,
    )
    bot = BrainwashBot()
    bot.run()


if __name__ == "__main__":
    main()
