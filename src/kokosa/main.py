"""
Kokosa Forward
==============

A Telegram bot that relays private messages between guests and a single
admin, screening guest content with an AI moderation model and offering
rate limiting, trust bypass, blocking and an appeal workflow.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. KOKOSA_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("KOKOSA_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import signal

from aiohttp import web

from kokosa.configuration.app_configuration import IN_MEMORY_DATABASE, app_config
from kokosa.configuration.environment import EnvironmentSettings, MissingEnvironmentError
from kokosa.database.db_connection import db_connection
from kokosa.database.kv_store import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from kokosa.i18n.translations import translator
from kokosa.listener.update_listener import UpdateListener
from kokosa.moderation.relay_services import RelayServices
from kokosa.telegram.client import TelegramClient
from kokosa.util.logger import get_logger, handle_exception
from kokosa.web.webhook_app import create_webhook_app

logger = get_logger("main")

PURGE_INTERVAL_SECONDS = 3600


def load_environment() -> EnvironmentSettings | None:
    """Load ``.env`` and return the settings, or ``None`` when something required is missing."""
    try:
        return EnvironmentSettings.from_environ(BASE_DIR / ".env")
    except MissingEnvironmentError as exc:
        logger.critical("%s. Bot cannot start.", exc)
        return None


async def open_store() -> KeyValueStore:
    """Open the configured state store; ``:memory:`` selects the in-process store."""
    database_path = app_config.database_path
    if database_path == IN_MEMORY_DATABASE:
        logger.warning("Using the in-memory store; state is lost on exit.")
        return MemoryKeyValueStore()

    await db_connection.open(database_path)
    store = SQLiteKeyValueStore(db_connection)
    await store.initialize()
    return store


async def purge_expired_periodically(store: SQLiteKeyValueStore, interval: float = PURGE_INTERVAL_SECONDS) -> None:
    """Delete expired rows on a fixed interval until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            await store.purge_expired()
        except Exception as exc:
            logger.error("Expired entry purge failed: %s", exc)


async def serve(app: web.Application, host: str, port: int) -> None:
    """Run the webhook server until SIGINT or SIGTERM."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("Webhook server listening on %s:%s", host, port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass

    try:
        await stop_event.wait()
        logger.info("Shutdown signal received; stopping webhook server...")
    finally:
        await runner.cleanup()


async def async_main() -> int:
    """Bootstrap storage, services and the webhook server, returning an exit code."""
    env = load_environment()
    if env is None:
        return 1

    translator.default_language = app_config.language

    try:
        logger.info("Initializing state store...")
        store = await open_store()
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    telegram = TelegramClient(env.bot_token)
    services = RelayServices.build(store, telegram, env, app_config)
    listener = UpdateListener(services)
    app = create_webhook_app(
        listener,
        telegram,
        webhook_secret=env.webhook_secret,
        admin_uid=env.admin_uid,
        webhook_path=app_config.webhook_path,
        public_url=env.public_url,
    )

    purge_task = None
    if isinstance(store, SQLiteKeyValueStore):
        purge_task = asyncio.create_task(purge_expired_periodically(store))

    exit_code = 0
    try:
        await serve(app, app_config.webhook_host, app_config.webhook_port)
    except Exception as exc:
        logger.critical("Webhook server error: %s", exc)
        exit_code = 1
    finally:
        if purge_task is not None:
            purge_task.cancel()
        await telegram.close()
        await db_connection.close()
        logger.info("Shutdown complete.")

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting Kokosa Forward...")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
