
import asyncio
import logging
import sys

from telethon import TelegramClient, events
from telethon.sessions import StringSession

from tracker.config import Settings
from tracker.context import TrackerContext
from tracker.logger import setup_logging
from tracker.transport import TelethonTransport
from tracker.web_server import start_server

# --- CONFIGURATION ---

settings = Settings.from_env()
setup_logging(settings.log_level, settings.log_dir)

missing = settings.validate_transport()
if missing:
    logging.error(f"[ERROR] Missing required config in .env: {missing}")
    sys.exit(1)


def build_client():
    session = StringSession(settings.bot_session) if settings.bot_session else 'bot'
    return TelegramClient(session, settings.api_id, settings.api_hash)


async def main():
    bot = build_client()
    context = TrackerContext(settings)
    transport = TelethonTransport(bot)

    @bot.on(events.NewMessage(incoming=True))
    async def on_message(event):
        await context.process_event(event, transport)

    @bot.on(events.ChatAction())
    async def on_chat_action(event):
        # Membership changed: next message refetches metadata
        if event.user_joined or event.user_added or event.user_left or event.user_kicked:
            context.invalidate_group(event.chat_id)

    start_server(context, settings.port)

    print("Bot Starting...")
    await bot.start(bot_token=settings.bot_token)
    context.start()
    context.install_signal_handlers(asyncio.get_running_loop(), on_shutdown=bot.disconnect)
    print("Online.")

    try:
        await bot.run_until_disconnected()
    finally:
        await context.shutdown()


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
