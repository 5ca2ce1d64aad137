from telegram import Update
from telegram.ext import ContextTypes, ConversationHandler

from fluxo.bot.commands.utils import get_ready_client
from fluxo.bot.handlers import ASKING_CONFIRMATION
from fluxo.bot.handlers.aux import register_transaction, send_confirmation_message
from fluxo.core import ai
from fluxo.core.access import Permission
from fluxo.core.models import Transaction, TransactionType
from fluxo.utils.text_utils import coerce_amount

TYPE_WORDS = {"entrada": TransactionType.ENTRADA, "saida": TransactionType.SAIDA, "saída": TransactionType.SAIDA}


async def handle_new_transaction(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Entrada da conversa `/lancar [id] [entrada|saida] [valor] [descrição]`.

    Com a IA ligada, o lançamento passa pela checagem de anomalia; se a IA
    estranhar, pede confirmação antes de registrar.
    """
    client = await get_ready_client(update, context)
    if client is None:
        return ConversationHandler.END

    args = list(context.args or [])
    if len(args) < 4 or args[1].lower() not in TYPE_WORDS:
        await update.message.reply_text(
            "Uso: `/lancar [id] [entrada|saida] [valor] [descrição]`\nExemplo: `/lancar 1 saida 89,90 Gás`",
            parse_mode="Markdown",
        )
        return ConversationHandler.END
    if not client.access.can(Permission.EDIT_LEDGER):
        await update.message.reply_text(f"🔒 Seu papel ({client.role.value}) não permite registrar lançamentos.")
        return ConversationHandler.END

    establishment = client.store.find_establishment(args[0])
    if establishment is None:
        await update.message.reply_text("❓ Estabelecimento não encontrado. Veja os ids em /estabelecimentos.")
        return ConversationHandler.END
    amount = coerce_amount(args[2])
    if amount <= 0:
        await update.message.reply_text("O valor precisa ser maior que zero. 💰")
        return ConversationHandler.END

    transaction = Transaction.create(
        establishment_id=establishment.id,
        type=TYPE_WORDS[args[1].lower()],
        amount=amount,
        description=" ".join(args[3:]),
        user=client.acting_email,
    )

    if client.store.settings.show_ai:
        anomaly = ai.check_anomaly(establishment.name, transaction.type, transaction.amount,
                                   transaction.description)
        if anomaly.is_anomalous:
            context.user_data["pending_transaction"] = transaction
            await send_confirmation_message(update, context, transaction, establishment, anomaly)
            return ASKING_CONFIRMATION

    await register_transaction(update, context, client, transaction)
    return ConversationHandler.END
