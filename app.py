import logging

from telegram import Update

from fluxo import config as settings
from fluxo.bot.bot_setup import setup_and_run_bot

# Execução local por polling. Em produção o bot roda por webhook (fluxo/main.py).


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    application = setup_and_run_bot({
        "TELEGRAM_BOT_TOKEN": settings.TELEGRAM_BOT_TOKEN,
        "SHEET_API_URL": settings.SHEET_API_URL,
        "SHEET_API_TIMEOUT": settings.SHEET_API_TIMEOUT,
        "STORAGE_DIR": settings.STORAGE_DIR,
        "MAX_CLIENTS": settings.MAX_CLIENTS,
    })
    logging.getLogger(__name__).info("Bot iniciado. Pressione Ctrl+C para parar.")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
