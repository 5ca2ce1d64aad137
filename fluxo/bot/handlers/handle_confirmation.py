from telegram import ReplyKeyboardMarkup, ReplyKeyboardRemove, Update
from telegram.ext import ContextTypes, ConversationHandler

from fluxo.bot.commands.utils import get_client
from fluxo.bot.handlers import ASKING_CONFIRMATION
from fluxo.bot.handlers.aux import register_transaction


async def handle_confirmation(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Lida com a confirmação (Sim/Não) de um lançamento marcado como anômalo."""
    user_response = update.message.text.lower()
    pending_transaction = context.user_data.get("pending_transaction")

    if not pending_transaction:
        await update.message.reply_text(
            "Ops! 😬 Não encontrei um lançamento pendente para confirmar. 🔄",
            reply_markup=ReplyKeyboardRemove(),
        )
        return ConversationHandler.END

    if user_response in ("sim ✅", "sim"):
        client = get_client(context, update.effective_chat.id)
        await register_transaction(update, context, client, pending_transaction)
        context.user_data.pop("pending_transaction", None)
        return ConversationHandler.END

    elif user_response in ("não ❌", "não", "nao"):
        context.user_data.pop("pending_transaction", None)
        await update.message.reply_text("Lançamento descartado. 🗑️", reply_markup=ReplyKeyboardRemove())
        return ConversationHandler.END

    else:
        keyboard = [["Sim ✅", "Não ❌"]]
        reply_markup = ReplyKeyboardMarkup(keyboard, one_time_keyboard=True, resize_keyboard=True)
        await update.message.reply_text(
            "Por favor, responda apenas 'Sim ✅' ou 'Não ❌'.",
            reply_markup=reply_markup,
        )
        return ASKING_CONFIRMATION
