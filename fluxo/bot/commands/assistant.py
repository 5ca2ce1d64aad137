from telegram import Update
from telegram.ext import ContextTypes

from fluxo.bot.commands.utils import get_ready_client
from fluxo.core import ai
from fluxo.core.models import TransactionType
from fluxo.utils.text_utils import format_brl


async def ia_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Pergunta livre ao assistente. `/ia @id pergunta` restringe a um estabelecimento."""
    client = await get_ready_client(update, context)
    if client is None:
        return
    if not client.store.settings.show_ai:
        await update.message.reply_text("O assistente de IA está desativado nas configurações. 🤖")
        return

    args = list(context.args or [])
    scope_label = ai.NETWORK_SCOPE
    transactions = client.store.transactions
    if args and args[0].startswith("@"):
        establishment = client.store.find_establishment(args.pop(0)[1:])
        if establishment is None:
            await update.message.reply_text("❓ Estabelecimento não encontrado.")
            return
        scope_label = establishment.name
        transactions = [t for t in transactions if t.establishment_id == establishment.id]

    question = " ".join(args).strip()
    if not question:
        await update.message.reply_text("Uso: `/ia [pergunta]`", parse_mode="Markdown")
        return

    await update.message.reply_text("🤖 Pensando...")
    response = ai.ask_financial_assistant(scope_label, transactions, client.store.establishments, question)
    await update.message.reply_text(response.answer)

    suggestion = response.suggested_transaction
    if suggestion is not None:
        est_id = suggestion.establishment_id or "[id]"
        kind = "entrada" if suggestion.type == TransactionType.ENTRADA else "saida"
        await update.message.reply_text(
            f"💡 Sugestão de lançamento: {suggestion.description} ({format_brl(suggestion.amount)}).\n"
            f"Para registrar: `/lancar {est_id} {kind} {suggestion.amount:.2f} {suggestion.description}`",
            parse_mode="Markdown",
        )


async def sugestoes_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = await get_ready_client(update, context)
    if client is None:
        return
    if len(context.args or []) < 2:
        await update.message.reply_text("Uso: `/sugestoes [id] [entrada|saida] [início opcional]`",
                                        parse_mode="Markdown")
        return

    establishment = client.store.find_establishment(context.args[0])
    if establishment is None:
        await update.message.reply_text("❓ Estabelecimento não encontrado.")
        return
    suggestions = ai.get_smart_suggestions(
        establishment.name, TransactionType.parse(context.args[1]), " ".join(context.args[2:])
    )
    ready = list(client.store.settings.ready_descriptions)
    options = ready + [s for s in suggestions if s not in ready]
    if not options:
        await update.message.reply_text("Não consegui gerar sugestões agora. 😕")
        return
    await update.message.reply_text("\n".join(f"- {o}" for o in options))
