import asyncio
import logging
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from attestation_bot.utils.logging_helpers import setup_logging

# ============ Configuration ============

setup_logging(logging.INFO)
logger = logging.getLogger(__name__)

from attestation_bot.config.settings import (  # noqa: E402
    API_BASE_URL,
    API_EMAIL,
    API_PASSWORD,
    API_TIMEOUT_SECONDS,
    API_TOKEN,
    BOT_TOKEN,
    DATABASE_PATH,
    REFRESH_INTERVAL_SECONDS,
    TIMEZONE
)

logger.info("✅ Settings loaded successfully")

# ============ Bot & Dispatcher ============
bot = Bot(
    token=BOT_TOKEN,
    default=DefaultBotProperties(parse_mode="HTML")
)
dp = Dispatcher()
scheduler = AsyncIOScheduler(timezone=TIMEZONE)

logger.info("✅ Bot and Dispatcher initialized")


# ============ Main Function ============
async def main():
    """Initialize and start the bot"""

    logger.info("=" * 60)
    logger.info("🚀 Starting Attestation Campaign Bot v1.0.0")
    logger.info("=" * 60)

    logger.info("🗄️  STEP 1: Initializing identity store...")

    try:
        from attestation_bot.database import DatabaseManager, UserRepository

        db_manager = DatabaseManager(DATABASE_PATH)
        await db_manager.init_db()

        missing_tables = await db_manager.missing_tables()
        if missing_tables:
            logger.error(f"❌ Missing tables: {', '.join(sorted(missing_tables))}")
            raise RuntimeError(f"Missing tables: {missing_tables}")

        logger.info("✅ Identity store ready")
    except Exception as e:
        logger.critical(f"❌ Database initialization failed: {e}", exc_info=True)
        raise

    logger.info("🌐 STEP 2: Connecting to attestation API...")

    from attestation_bot.api.client import AttestationAPI

    api = AttestationAPI(
        API_BASE_URL,
        token=API_TOKEN,
        email=API_EMAIL,
        password=API_PASSWORD,
        timeout=API_TIMEOUT_SECONDS
    )
    if await api.login():
        logger.info(f"✅ Authenticated against {API_BASE_URL}")
    else:
        logger.warning("⚠️  API login failed, requests will retry on demand")

    logger.info("⏰ STEP 3: Setting up dashboard refresh...")

    from attestation_bot.schedulers.refresh import RefreshScheduler
    from attestation_bot.services.dashboard import DashboardStore

    store = DashboardStore(api)
    refresher = RefreshScheduler(scheduler, REFRESH_INTERVAL_SECONDS)
    scheduler.start()
    logger.info(f"  🔄 Refresh interval: {REFRESH_INTERVAL_SECONDS} seconds")
    logger.info("✅ Scheduler started")

    dp["api"] = api
    dp["store"] = store
    dp["refresher"] = refresher
    dp["users"] = UserRepository(DATABASE_PATH)

    logger.info("📝 STEP 4: Registering handlers...")

    try:
        from attestation_bot.handlers import actions, commands, dashboard

        dp.include_router(commands.router)
        logger.info("  ✅ Commands handler registered")

        dp.include_router(dashboard.router)
        logger.info("  ✅ Dashboard handler registered")

        dp.include_router(actions.router)
        logger.info("  ✅ Actions handler registered")

        logger.info("✅ All handlers registered successfully!")
    except Exception as e:
        logger.critical(f"❌ Handler registration failed: {e}", exc_info=True)
        raise

    logger.info("=" * 60)
    logger.info("🤖 Bot is now running and listening for messages...")
    logger.info("=" * 60)

    try:
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    except Exception as e:
        logger.critical(f"❌ Polling error: {e}", exc_info=True)
        raise
    finally:
        logger.info("🔄 Shutting down bot...")

        for dashboard_state in store:
            refresher.stop(dashboard_state)

        if scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("  ✅ Scheduler stopped")

        await api.close()
        logger.info("  ✅ API session closed")

        await bot.session.close()
        logger.info("  ✅ Bot session closed")

        logger.info("👋 Bot stopped successfully")


# ============ Entry Point ============
if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("\n👋 Bot stopped by user (Ctrl+C)")
    except Exception as e:
        logger.critical(f"❌ Fatal error: {e}", exc_info=True)
        sys.exit(1)
