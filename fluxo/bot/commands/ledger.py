import dataclasses

from telegram import Update
from telegram.ext import ContextTypes

from fluxo.bot.commands.utils import get_ready_client
from fluxo.core.access import Permission
from fluxo.core.errors import InvalidTransfer
from fluxo.core.models import GENERAL_NOTE_SCOPE
from fluxo.utils.text_utils import coerce_amount, format_brl

NO_PERMISSION = "🔒 Seu papel ({role}) não permite esta operação."


async def editar_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Corrige valor (e opcionalmente a descrição) de um lançamento existente."""
    client = await get_ready_client(update, context)
    if client is None:
        return
    if len(context.args or []) < 2:
        await update.message.reply_text(
            "Uso: `/editar [id_transacao] [valor] [descrição opcional]`", parse_mode="Markdown"
        )
        return

    original = client.store.find_transaction(context.args[0])
    if original is None:
        await update.message.reply_text("❓ Lançamento não encontrado. Use /sync e tente de novo.")
        return
    amount = coerce_amount(context.args[1])
    if amount <= 0:
        await update.message.reply_text("O valor precisa ser maior que zero. 💰")
        return

    description = " ".join(context.args[2:]) or original.description
    edited = dataclasses.replace(original, amount=amount, description=description)
    if not client.edit_transaction(edited):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return
    await update.message.reply_text(f"✏️ Lançamento atualizado: {description} ({format_brl(amount)}).")


async def transferir_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Transferência entre dois estabelecimentos; o motivo é obrigatório."""
    client = await get_ready_client(update, context)
    if client is None:
        return
    if len(context.args or []) < 4:
        await update.message.reply_text(
            "Uso: `/transferir [origem] [destino] [valor] [motivo]`", parse_mode="Markdown"
        )
        return

    source_id, target_id, raw_amount = context.args[:3]
    observation = " ".join(context.args[3:])
    try:
        done = client.transfer(source_id, target_id, coerce_amount(raw_amount), observation)
    except InvalidTransfer as e:
        await update.message.reply_text(f"❌ {e}")
        return
    if not done:
        # O papel pode ter mudado na busca feita após a primeira perna
        role = client.role.value if client.role else "sem acesso"
        await update.message.reply_text(NO_PERMISSION.format(role=role))
        return
    await update.message.reply_text(
        f"🔁 Transferência de {format_brl(coerce_amount(raw_amount))} registrada. Pendentes: {client.pending_count}."
    )


async def nota_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Atualiza o mural geral. `/nota @id texto` grava a nota de um estabelecimento."""
    client = await get_ready_client(update, context)
    if client is None:
        return
    args = list(context.args or [])
    scope = GENERAL_NOTE_SCOPE
    if args and args[0].startswith("@"):
        scope = args.pop(0)[1:]
    if not client.access.can(Permission.EDIT_LEDGER):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return

    client.update_note(" ".join(args), scope)
    await update.message.reply_text("📝 Nota salva.")
