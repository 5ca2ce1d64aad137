from telegram import Update
from telegram.ext import ContextTypes

from fluxo.bot.commands.utils import get_client, get_ready_client
from fluxo.core import charts, reports
from fluxo.core.models import GENERAL_NOTE_SCOPE
from fluxo.utils.text_utils import format_brl

GROUP_SIDES = {"esquerdo": "left", "direito": "right"}


def _dark(client) -> bool:
    return client.session is not None and client.session.dark_mode


async def estabelecimentos_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = await get_ready_client(update, context)
    if client is None:
        return
    establishments = sorted(client.store.establishments, key=lambda e: e.name)
    if not establishments:
        await update.message.reply_text("Nenhum estabelecimento cadastrado ainda. 🏢")
        return
    lines = ["**Estabelecimentos:**"]
    for e in establishments:
        lines.append(f"- `{e.id}` {e.name} ({e.responsible_email or 'sem responsável'})")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


async def saldo_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Saldo de cada estabelecimento, ou a soma dos ids informados."""
    client = await get_ready_client(update, context)
    if client is None:
        return

    if context.args:
        total = client.balance_for(context.args)
        await update.message.reply_text(f"💰 Saldo consolidado: *{format_brl(total)}*", parse_mode="Markdown")
        return

    establishments = sorted(client.store.establishments, key=lambda e: e.name)
    lines = ["**Saldos:**"]
    for e in establishments:
        lines.append(f"- {e.name}: {format_brl(client.balance_for([e.id]))}")
    lines.append(f"\n**Rede:** {format_brl(client.balance_for([e.id for e in establishments]))}")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


async def grupos_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = await get_ready_client(update, context)
    if client is None:
        return
    balances = client.group_balances()
    await update.message.reply_text(
        f"⬅️ Grupo esquerdo: *{format_brl(balances['left'])}*\n"
        f"➡️ Grupo direito: *{format_brl(balances['right'])}*",
        parse_mode="Markdown",
    )


async def grupo_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Escolhe os estabelecimentos de um dos grupos do painel. Fica salvo só neste chat."""
    client = get_client(context, update.effective_chat.id)
    if not context.args or context.args[0].lower() not in GROUP_SIDES:
        await update.message.reply_text("Uso: `/grupo [esquerdo|direito] [id ...]`", parse_mode="Markdown")
        return
    side = GROUP_SIDES[context.args[0].lower()]
    client.select_group(side, context.args[1:])
    await update.message.reply_text(f"✅ Grupo {context.args[0].lower()} atualizado.")


async def grafico_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Gera e envia o gráfico dos últimos 7 dias."""
    client = await get_ready_client(update, context)
    if client is None:
        return
    if not client.store.settings.show_chart:
        await update.message.reply_text("O gráfico está desativado nas configurações. 📉")
        return

    await update.message.reply_text("Gerando o gráfico, por favor aguarde...")
    chart_buffer = charts.generate_trend_chart(client.store.transactions, dark=_dark(client))
    if chart_buffer:
        chart_buffer.name = "fluxo_7_dias.png"
        await update.message.reply_photo(photo=chart_buffer, caption="Entradas e saídas dos últimos 7 dias:")
    else:
        await update.message.reply_text("Nenhuma movimentação nos últimos 7 dias. 🤷")


async def relatorio_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Totais do período, por estabelecimento, com o gráfico de saldos."""
    client = await get_ready_client(update, context)
    if client is None:
        return

    args = list(context.args or [])
    start = args.pop(0) if args else None
    end = args.pop(0) if args else None
    selected = reports.filter_transactions(client.store.transactions, start, end, args or None)
    summary = reports.summarize(selected)
    if summary.count == 0:
        await update.message.reply_text("Nenhum lançamento encontrado para o filtro informado. 🔎")
        return

    table = reports.summary_by_establishment(selected, client.store.establishments)
    lines = [
        f"📊 **Relatório** ({start or 'início'} a {end or 'hoje'})",
        f"Lançamentos: {summary.count}",
        f"Entradas: {format_brl(summary.total_entries)}",
        f"Saídas: {format_brl(summary.total_exits)}",
        f"Saldo: *{format_brl(summary.balance)}*",
        "",
    ]
    for row in table.itertuples(index=False):
        lines.append(f"- {row[0]}: {format_brl(row[3])}")
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")

    chart_buffer = charts.generate_balance_chart(selected, client.store.establishments, dark=_dark(client))
    if chart_buffer:
        chart_buffer.name = "saldo_por_estabelecimento.png"
        await update.message.reply_photo(photo=chart_buffer)


async def notas_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = await get_ready_client(update, context)
    if client is None:
        return
    if not client.store.settings.show_notes:
        await update.message.reply_text("O mural de notas está desativado nas configurações.")
        return
    notes = client.store.state.notes
    if not any(notes.values()):
        await update.message.reply_text("📝 O mural está vazio.")
        return

    names = {e.id: e.name for e in client.store.establishments}
    lines = []
    if notes.get(GENERAL_NOTE_SCOPE):
        lines.append(f"📌 **Geral:**\n{notes[GENERAL_NOTE_SCOPE]}")
    for scope, text in notes.items():
        if scope != GENERAL_NOTE_SCOPE and text:
            lines.append(f"🏢 **{names.get(scope, scope)}:**\n{text}")
    await update.message.reply_text("\n\n".join(lines), parse_mode="Markdown")
