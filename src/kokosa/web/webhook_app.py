"""
aiohttp application receiving Telegram webhook calls.

Routes:
    POST <webhook path>       update delivery (secret header checked, 403 otherwise)
    GET  /registerWebhook     point Telegram at ``<public url><webhook path>``
    GET  /unRegisterWebhook   remove the webhook
    GET  /registerCommands    install the admin and guest command menus
    GET  /healthz             liveness probe

Updates are acknowledged immediately with ``Ok`` and processed in a
background task so Telegram never waits on moderation calls.
"""

from __future__ import annotations

import asyncio
import hmac
from typing import Any, Dict, List, Optional, Set

from aiohttp import web

from kokosa.i18n.translations import t
from kokosa.listener.update_listener import ALLOWED_UPDATES, UpdateListener
from kokosa.util.logger import get_logger

logger = get_logger("webhook_app")

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

ADMIN_MENU = (
    "start", "list", "stats", "block", "unblock", "trust",
    "untrust", "trustid", "status", "check", "checktext", "lang",
)
GUEST_MENU = ("start", "appeal", "lang")

LISTENER_KEY = web.AppKey("listener", UpdateListener)
TELEGRAM_KEY = web.AppKey("telegram", object)
SETTINGS_KEY = web.AppKey("settings", dict)
TASKS_KEY = web.AppKey("tasks", set)


def build_command_menu(commands: tuple, lang: Optional[str] = None) -> List[Dict[str, str]]:
    return [{"command": name, "description": t(f"cmd_{name}", lang)} for name in commands]


def _log_task_result(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("[WEBHOOK] Update processing failed", exc_info=exc)


async def handle_webhook(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    provided = request.headers.get(SECRET_HEADER, "")
    if not hmac.compare_digest(provided.encode(), settings["webhook_secret"].encode()):
        logger.warning("[AUTH] Unauthorized webhook attempt from %s", request.remote)
        return web.Response(status=403, text="Unauthorized")

    try:
        update = await request.json()
    except ValueError:
        logger.warning("[WEBHOOK] Rejected malformed update body")
        return web.Response(status=400, text="Bad Request")

    tasks: Set[asyncio.Task] = request.app[TASKS_KEY]
    task = asyncio.create_task(request.app[LISTENER_KEY].process_update(update))
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    task.add_done_callback(_log_task_result)
    return web.Response(text="Ok")


async def register_webhook(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    base_url = settings.get("public_url") or f"{request.scheme}://{request.host}"
    webhook_url = base_url.rstrip("/") + settings["webhook_path"]
    result = await request.app[TELEGRAM_KEY].set_webhook(
        webhook_url,
        secret_token=settings["webhook_secret"],
        allowed_updates=ALLOWED_UPDATES,
    )
    logger.info("[WEBHOOK] Registered %s: %s", webhook_url, result.get("ok"))
    return web.json_response(result)


async def unregister_webhook(request: web.Request) -> web.Response:
    result = await request.app[TELEGRAM_KEY].set_webhook("")
    logger.info("[WEBHOOK] Unregistered: %s", result.get("ok"))
    return web.json_response(result)


async def register_commands(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    telegram = request.app[TELEGRAM_KEY]
    results: Dict[str, Any] = {
        "admin": await telegram.set_my_commands(
            build_command_menu(ADMIN_MENU),
            scope={"type": "chat", "chat_id": int(settings["admin_uid"])},
        ),
        "default": await telegram.set_my_commands(
            build_command_menu(GUEST_MENU),
            scope={"type": "default"},
        ),
    }
    return web.json_response(results)


async def health(_: web.Request) -> web.Response:
    return web.json_response({"ok": True, "service": "kokosa-forward"})


async def _cancel_pending(app: web.Application) -> None:
    pending = list(app[TASKS_KEY])
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


def create_webhook_app(
    listener: UpdateListener,
    telegram: Any,
    webhook_secret: str,
    admin_uid: str,
    webhook_path: str = "/endpoint",
    public_url: Optional[str] = None,
) -> web.Application:
    """Build the aiohttp application. Unknown paths answer 404."""
    app = web.Application()
    app[LISTENER_KEY] = listener
    app[TELEGRAM_KEY] = telegram
    app[SETTINGS_KEY] = {
        "webhook_secret": webhook_secret,
        "admin_uid": str(admin_uid),
        "webhook_path": webhook_path,
        "public_url": public_url,
    }
    app[TASKS_KEY] = set()

    app.router.add_post(webhook_path, handle_webhook)
    app.router.add_get("/registerWebhook", register_webhook)
    app.router.add_get("/unRegisterWebhook", unregister_webhook)
    app.router.add_get("/registerCommands", register_commands)
    app.router.add_get("/healthz", health)
    app.on_shutdown.append(_cancel_pending)
    return app
