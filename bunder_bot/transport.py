"""
transport.py

Messaging transports. `TelegramTransport` long-polls the Telegram Bot API via
python-telegram-bot; `NullTransport` has the same interface but keeps
everything in process, which is what tests and offline console runs use.

Handlers registered on a transport receive plain values, never library
objects:
  - command handlers:  await handler(chat_id, text)
  - message handlers:  await handler(chat_id, text)
  - callback handlers: await handler(chat_id, data)
"""
import asyncio
import logging
import sys
from typing import Awaitable, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Handler = Callable[[int, str], Awaitable[None]]
Buttons = Sequence[Sequence[Tuple[str, str]]]  # rows of (label, callback_data)

POLL_INTERVAL = 0.3
POLL_TIMEOUT = 10


class SentMessage(NamedTuple):
    chat_id: int
    text: str
    parse_mode: Optional[str] = None
    buttons: Optional[Buttons] = None


def parse_command(text: str) -> Tuple[Optional[str], str]:
    """Split '/cmd@bot args' into ('cmd', 'args'); non-commands give (None, '')."""
    if not text or not text.startswith("/"):
        return None, ""
    parts = text.strip().split(maxsplit=1)
    cmd = parts[0][1:].split("@", 1)[0].lower()
    arg = parts[1].strip() if len(parts) > 1 else ""
    return cmd or None, arg


class Transport:
    """Capability interface shared by every transport."""

    name = "base"

    def __init__(self):
        self.commands: Dict[str, Handler] = {}
        self.message_handlers: List[Handler] = []
        self.callback_handlers: List[Handler] = []
        self.intervals: List[Tuple[float, Callable[[], object]]] = []

    def on_command(self, name: str, handler: Handler) -> None:
        self.commands[name.lower()] = handler

    def on_message(self, handler: Handler) -> None:
        self.message_handlers.append(handler)

    def on_callback_query(self, handler: Handler) -> None:
        self.callback_handlers.append(handler)

    def every(self, seconds: float, callback: Callable[[], object]) -> None:
        """Run a plain callable periodically while the transport is running."""
        self.intervals.append((seconds, callback))

    async def send_message(self, chat_id: int, text: str, parse_mode: Optional[str] = None, buttons: Optional[Buttons] = None) -> None:
        raise NotImplementedError

    async def send_typing(self, chat_id: int) -> None:
        raise NotImplementedError

    def run(self) -> None:
        raise NotImplementedError


class NullTransport(Transport):
    """In-process transport: records outgoing messages, dispatches synthetic updates."""

    name = "null"

    def __init__(self, console_chat_id: int = 1):
        super().__init__()
        self.outbox: List[SentMessage] = []
        self.typing: List[int] = []
        self.console_chat_id = console_chat_id

    async def send_message(self, chat_id, text, parse_mode=None, buttons=None):
        self.outbox.append(SentMessage(chat_id, text, parse_mode, buttons))
        logger.debug("[null] -> %s: %s", chat_id, text[:60])

    async def send_typing(self, chat_id):
        self.typing.append(chat_id)

    def last_text(self, chat_id: Optional[int] = None) -> Optional[str]:
        for msg in reversed(self.outbox):
            if chat_id is None or msg.chat_id == chat_id:
                return msg.text
        return None

    async def dispatch(self, chat_id: int, text: str) -> None:
        """Deliver a text message the way Telegram's command/message filters would."""
        cmd, _ = parse_command(text)
        if cmd is not None:
            handler = self.commands.get(cmd)
            if handler is None:
                logger.debug("Ignoring unknown command /%s", cmd)
                return
            await handler(chat_id, text)
            return
        for handler in self.message_handlers:
            await handler(chat_id, text)

    async def press(self, chat_id: int, data: str) -> None:
        for handler in self.callback_handlers:
            await handler(chat_id, data)

    def run(self) -> None:
        logger.warning("No Telegram transport configured; reading messages from stdin (Ctrl-D to quit)")
        try:
            asyncio.run(self._console())
        except KeyboardInterrupt:
            logger.info("Console transport stopped")

    async def _console(self):
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            text = line.strip()
            if not text:
                continue
            seen = len(self.outbox)
            await self.dispatch(self.console_chat_id, text)
            for msg in self.outbox[seen:]:
                print(msg.text)
                print()


class TelegramTransport(Transport):
    """Long-polling transport backed by python-telegram-bot's Application."""

    name = "telegram"

    def __init__(self, token: str, poll_interval: float = POLL_INTERVAL, timeout: int = POLL_TIMEOUT):
        super().__init__()
        from telegram.ext import Application

        self.poll_interval = poll_interval
        self.timeout = timeout
        self.app = (
            Application.builder()
            .token(token)
            .concurrent_updates(True)
            .post_init(self._post_init)
            .build()
        )
        self._registered = False

    async def _post_init(self, app) -> None:
        me = await app.bot.get_me()
        logger.info("Bot connected to Telegram as @%s (%s)", me.username, me.first_name)

    async def send_message(self, chat_id, text, parse_mode=None, buttons=None):
        from telegram import InlineKeyboardButton, InlineKeyboardMarkup

        markup = None
        if buttons:
            markup = InlineKeyboardMarkup(
                [[InlineKeyboardButton(label, callback_data=data) for label, data in row] for row in buttons]
            )
        await self.app.bot.send_message(chat_id=chat_id, text=text, parse_mode=parse_mode, reply_markup=markup)

    async def send_typing(self, chat_id):
        from telegram.constants import ChatAction

        await self.app.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)

    def _wrap_text(self, handler: Handler):
        async def callback(update, context):
            message = update.effective_message
            chat = update.effective_chat
            if message is None or chat is None or not message.text:
                return
            await handler(chat.id, message.text)

        return callback

    def _wrap_callback(self, handler: Handler):
        async def callback(update, context):
            query = update.callback_query
            await query.answer()
            chat = update.effective_chat
            if chat is None or not query.data:
                return
            await handler(chat.id, query.data)

        return callback

    def _wrap_interval(self, fn):
        async def job(context):
            fn()

        return job

    async def _on_error(self, update, context) -> None:
        from telegram.error import Conflict, NetworkError

        err = context.error
        if isinstance(err, Conflict):
            logger.warning("Telegram polling conflict: %s (another instance may already be polling)", err)
        elif isinstance(err, NetworkError):
            logger.error("Polling error: %s", err)
        else:
            logger.error("Unhandled error while processing update %s", update, exc_info=err)

    def _register(self) -> None:
        if self._registered:
            return
        from telegram.ext import CallbackQueryHandler, CommandHandler, MessageHandler, filters

        for name, handler in self.commands.items():
            self.app.add_handler(CommandHandler(name, self._wrap_text(handler)))
        for handler in self.message_handlers:
            self.app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self._wrap_text(handler)))
        for handler in self.callback_handlers:
            self.app.add_handler(CallbackQueryHandler(self._wrap_callback(handler)))
        self.app.add_error_handler(self._on_error)

        if self.intervals:
            if self.app.job_queue is None:
                logger.warning("python-telegram-bot job queue unavailable; periodic tasks disabled")
            else:
                for seconds, fn in self.intervals:
                    self.app.job_queue.run_repeating(self._wrap_interval(fn), interval=seconds, first=seconds)
        self._registered = True

    def run(self) -> None:
        from telegram import Update

        self._register()
        logger.info("Starting Telegram polling...")
        self.app.run_polling(
            poll_interval=self.poll_interval,
            timeout=self.timeout,
            allowed_updates=[Update.MESSAGE, Update.CALLBACK_QUERY],
        )
        logger.info("Telegram polling stopped")


def build_transport(settings) -> Transport:
    if settings.transport == "null":
        return NullTransport()
    return TelegramTransport(settings.telegram_token)


__all__ = ["Transport", "NullTransport", "TelegramTransport", "SentMessage", "parse_command", "build_transport"]
