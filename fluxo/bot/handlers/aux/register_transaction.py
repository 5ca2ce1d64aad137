from telegram import ReplyKeyboardRemove, Update
from telegram.ext import ContextTypes

from fluxo.core.models import Transaction, TransactionType
from fluxo.core.sync import SyncOrchestrator
from fluxo.utils.text_utils import format_brl


async def register_transaction(update: Update, context: ContextTypes.DEFAULT_TYPE,
                               client: SyncOrchestrator, transaction: Transaction) -> None:
    """Registra o lançamento no cache e envia para a planilha."""
    if not client.add_transaction(transaction):
        await update.message.reply_text(
            f"🔒 Seu papel ({client.role.value}) não permite registrar lançamentos.",
            reply_markup=ReplyKeyboardRemove(),
        )
        return

    emoji = "💰" if transaction.type == TransactionType.ENTRADA else "💸"
    synced = "✅ Sincronizado com a planilha." if client.pending_count == 0 else (
        f"⏳ Salvo localmente. Pendentes de sincronização: {client.pending_count}."
    )
    await update.message.reply_text(
        f"{emoji} {transaction.type.value} de *{format_brl(transaction.amount)}* registrada "
        f"({transaction.description}, {transaction.date}).\n{synced}",
        reply_markup=ReplyKeyboardRemove(),
        parse_mode="Markdown",
    )
