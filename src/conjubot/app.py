"""Main application entry point."""
import asyncio
import logging
from typing import Optional
from warnings import filterwarnings

from telegram.warnings import PTBUserWarning

# Suppress the warning about CallbackQueryHandler and per_message
filterwarnings(action="ignore", message=r".*CallbackQueryHandler", category=PTBUserWarning)

from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ConversationHandler,
    MessageHandler,
    filters,
)

from conjubot.config import settings
from conjubot.logging_config import setup_logging
from conjubot.models.base import init_db
from conjubot.monitoring import start_monitoring
from conjubot.bot import (
    handle_start,
    handle_answer,
    handle_callback,
    handle_review,
    MAIN_MENU,
    QUIZ,
)


def build_conversation_handler() -> ConversationHandler:
    """Wire the quiz handlers into a single conversation."""
    return ConversationHandler(
        entry_points=[
            CommandHandler("start", handle_start),
            CallbackQueryHandler(handle_callback),
        ],
        states={
            MAIN_MENU: [
                CallbackQueryHandler(handle_callback),
            ],
            QUIZ: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, handle_answer),
                CallbackQueryHandler(handle_callback),
            ],
        },
        fallbacks=[
            CommandHandler("start", handle_start),
            CommandHandler("review", handle_review),
        ],
        per_message=False,
    )


class ConjuBot:
    """Main application class."""

    def __init__(self):
        """Initialize the application."""
        self.application: Optional[Application] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    async def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        try:
            settings.validate_bot()

            # Initialize database
            init_db()
            self.logger.info("Database initialized")

            if settings.monitoring.metrics_port:
                start_monitoring(settings.monitoring.metrics_port)
                self.logger.info("Metrics exported on port %d", settings.monitoring.metrics_port)

            # Create application
            self.application = Application.builder().token(settings.bot.token).build()
            self.logger.info("Application created")

            self.application.add_handler(build_conversation_handler())
            self.logger.info("Handlers added")

            # Start application
            await self.application.initialize()
            await self.application.start()
            await self.application.updater.start_polling()
            self.logger.info("Application started")

            self.running = True

        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the application."""
        if not self.application:
            self.running = False
            return

        try:
            if self.application.updater and self.application.updater.running:
                await self.application.updater.stop()
            if self.application.running:
                await self.application.stop()
            await self.application.shutdown()
            self.logger.info("Application stopped")
        finally:
            self.application = None
            self.running = False

    def run(self) -> None:
        """Run the application until interrupted."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        try:
            loop.run_until_complete(self.start())
            loop.run_forever()
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt")
        finally:
            loop.run_until_complete(self.stop())
            loop.close()


def main() -> None:
    """Main entry point."""
    setup_logging("Starting ConjuBot ...")
    bot = ConjuBot()
    bot.run()


if __name__ == "__main__":
    main()
