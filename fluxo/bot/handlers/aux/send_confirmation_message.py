from telegram import ReplyKeyboardMarkup, Update
from telegram.ext import ContextTypes

from fluxo.core.models import AnomalyCheckResult, Establishment, Transaction, TransactionType
from fluxo.utils.text_utils import format_brl


async def send_confirmation_message(update: Update, context: ContextTypes.DEFAULT_TYPE,
                                    transaction: Transaction, establishment: Establishment,
                                    anomaly: AnomalyCheckResult) -> None:
    """Mostra o alerta da IA e pede confirmação antes de registrar."""
    emoji = "💰" if transaction.type == TransactionType.ENTRADA else "💸"
    message_text = (
        f"⚠️ *A IA achou este lançamento fora do padrão:*\n{anomaly.reason}\n\n"
        f"{emoji} {transaction.type.value}: *{format_brl(transaction.amount)}*\n"
        f"🏢 Estabelecimento: *{establishment.name}*\n"
        f"📝 Descrição: *{transaction.description}*\n"
        f"📅 Data: *{transaction.date}*"
    )
    keyboard = [["Sim ✅", "Não ❌"]]
    reply_markup = ReplyKeyboardMarkup(keyboard, one_time_keyboard=True, resize_keyboard=True)
    await update.message.reply_text(
        f"{message_text}\n\n*Registrar mesmo assim?* 🤔", reply_markup=reply_markup, parse_mode="Markdown"
    )
