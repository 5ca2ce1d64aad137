# fluxo/main.py
import asyncio
import logging

from flask import Flask, request, jsonify
from telegram import Update

from fluxo import config as settings
from fluxo.bot.bot_setup import setup_and_run_bot

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

WEBHOOK_PATH_SUFFIX = "/webhook"


def build_config() -> dict:
    return {
        "TELEGRAM_BOT_TOKEN": settings.TELEGRAM_BOT_TOKEN,
        "SHEET_API_URL": settings.SHEET_API_URL,
        "SHEET_API_TIMEOUT": settings.SHEET_API_TIMEOUT,
        "STORAGE_DIR": settings.STORAGE_DIR,
        "MAX_CLIENTS": settings.MAX_CLIENTS,
    }


# --- Setup da Aplicação no Escopo Global (executado uma vez ao carregar o módulo) ---
try:
    ptb_application = setup_and_run_bot(build_config())

    # A aplicação PTB precisa ser inicializada uma única vez antes de processar updates
    try:
        asyncio.run(ptb_application.initialize())
        logger.info("python-telegram-bot Application inicializada.")
    except RuntimeError as e:
        if "cannot run an event loop while another loop is running" not in str(e):
            raise
        logger.warning("Event loop já em execução, pulando initialize().")

    flask_app = Flask(__name__)

    @flask_app.route(WEBHOOK_PATH_SUFFIX, methods=["POST"])
    async def telegram_webhook():
        if not request.is_json:
            logger.error("Webhook recebeu requisição que não é JSON.")
            return jsonify({"status": "error", "message": "Request must be JSON"}), 400

        update_json = request.get_json()
        try:
            update = Update.de_json(update_json, ptb_application.bot)
            await ptb_application.process_update(update)
            return jsonify({"status": "ok"}), 200
        except Exception:
            logger.exception("Falha ao processar update do Telegram.")
            return jsonify({"status": "error", "message": "Failed to process update"}), 500

    wsgi_app = flask_app

except Exception:
    logger.exception("Erro crítico durante a inicialização de fluxo/main.py")
    raise
