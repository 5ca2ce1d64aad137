# fluxo/bot/bot_setup.py
import logging
from collections import OrderedDict
from pathlib import Path

from telegram.ext import Application, CommandHandler, ConversationHandler, MessageHandler, filters

from fluxo.bot.commands import ALL_COMMANDS
from fluxo.bot.handlers import ASKING_CONFIRMATION, handle_confirmation, handle_new_transaction
from fluxo.core.gateway import SheetGateway
from fluxo.core.session import LocalStorage, SessionStore
from fluxo.core.sync import SyncOrchestrator

logger = logging.getLogger(__name__)


def build_client(chat_id: int, config: dict) -> SyncOrchestrator:
    """Orquestrador de um chat: sessão própria em disco e a planilha compartilhada."""
    url = config.get("SHEET_API_URL")
    gateway = SheetGateway(url, timeout=config.get("SHEET_API_TIMEOUT")) if url else None
    storage = LocalStorage(Path(config["STORAGE_DIR"]) / f"sessao_{chat_id}.json")
    return SyncOrchestrator(gateway, session=SessionStore(storage))


def setup_and_run_bot(config: dict) -> Application:
    """
    Configura a aplicação do bot do Telegram (Handlers, Comandos, Conversas).
    Retorna o objeto Application configurado, pronto para webhook ou polling.
    """
    application = Application.builder().token(config["TELEGRAM_BOT_TOKEN"]).build()

    # Cada chat ganha seu orquestrador na primeira mensagem (ver commands.utils.get_client)
    application.bot_data["client_factory"] = lambda chat_id: build_client(chat_id, config)
    application.bot_data["clients"] = OrderedDict()
    application.bot_data["max_clients"] = config.get("MAX_CLIENTS")

    # --- Comandos simples ---
    for name, callback in ALL_COMMANDS.items():
        application.add_handler(CommandHandler(name, callback))

    # --- Conversa de lançamento ---
    # /lancar registra direto, ou para em ASKING_CONFIRMATION se a IA apontar anomalia.
    conv_handler = ConversationHandler(
        entry_points=[CommandHandler("lancar", handle_new_transaction)],
        states={
            ASKING_CONFIRMATION: [
                MessageHandler(filters.TEXT & ~filters.COMMAND, handle_confirmation)
            ],
        },
        fallbacks=[CommandHandler("cancel", lambda update, context: ConversationHandler.END)],
    )
    application.add_handler(conv_handler)

    if config.get("SHEET_API_URL"):
        logger.info("Bot configurado com a planilha em %s", config["SHEET_API_URL"])
    else:
        logger.warning("SHEET_API_URL não definida: o bot vai operar em modo local, sem sincronização.")
    return application
