import dataclasses

from telegram import Update
from telegram.ext import ContextTypes

from fluxo.bot.commands.ledger import NO_PERMISSION
from fluxo.bot.commands.utils import get_ready_client
from fluxo.core.access import Permission
from fluxo.core.models import AuthorizedUser, Establishment, Role

# Nome da opção no comando -> campo de AppSettings
SETTING_FLAGS = {
    "notas": "show_notes",
    "ia": "show_ai",
    "grafico": "show_chart",
    "push": "push_notifications",
    "resumo_semanal": "weekly_email_summary",
}
TRUE_WORDS = {"sim", "s", "on", "1", "true"}
FALSE_WORDS = {"nao", "não", "n", "off", "0", "false"}


async def atalho_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Adiciona uma descrição rápida. Sem argumentos, lista as existentes."""
    client = await get_ready_client(update, context)
    if client is None:
        return
    description = " ".join(context.args or []).strip()
    if not description:
        current = client.store.settings.ready_descriptions
        text = "\n".join(f"- {d}" for d in current) if current else "Nenhuma descrição rápida cadastrada."
        await update.message.reply_text(text)
        return

    if not client.access.can(Permission.MANAGE_DESCRIPTIONS):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return
    if client.add_ready_description(description):
        await update.message.reply_text(f"⚡ Atalho '{description}' adicionado.")
    else:
        await update.message.reply_text(f"O atalho '{description}' já existe.")


async def remover_atalho_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = await get_ready_client(update, context)
    if client is None:
        return
    description = " ".join(context.args or []).strip()
    if not client.access.can(Permission.MANAGE_DESCRIPTIONS):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return
    if client.remove_ready_description(description):
        await update.message.reply_text(f"🗑️ Atalho '{description}' removido.")
    else:
        await update.message.reply_text(f"Atalho '{description}' não encontrado.")


async def novo_estabelecimento_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = await get_ready_client(update, context)
    if client is None:
        return
    if len(context.args or []) < 2:
        await update.message.reply_text("Uso: `/novo_estabelecimento [email] [nome]`", parse_mode="Markdown")
        return

    establishment = Establishment.create(name=" ".join(context.args[1:]), responsible_email=context.args[0])
    if not client.add_establishment(establishment):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return
    await update.message.reply_text(f"🏢 {establishment.name} cadastrado com id `{establishment.id}`.",
                                    parse_mode="Markdown")


async def editar_estabelecimento_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = await get_ready_client(update, context)
    if client is None:
        return
    if len(context.args or []) < 3:
        await update.message.reply_text(
            "Uso: `/editar_estabelecimento [id] [email] [nome]`", parse_mode="Markdown"
        )
        return

    current = client.store.find_establishment(context.args[0])
    if current is None:
        await update.message.reply_text("❓ Estabelecimento não encontrado.")
        return
    edited = dataclasses.replace(current, responsible_email=context.args[1], name=" ".join(context.args[2:]))
    if not client.edit_establishment(edited):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return
    await update.message.reply_text(f"✏️ {edited.name} atualizado.")


async def usuario_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Autoriza um e-mail (ou troca o papel de quem já está na lista)."""
    client = await get_ready_client(update, context)
    if client is None:
        return
    if len(context.args or []) != 2:
        await update.message.reply_text(
            "Uso: `/usuario [email] [Admin|Financeiro|Convidado]`", parse_mode="Markdown"
        )
        return

    user = AuthorizedUser(email=context.args[0].strip(), role=Role.parse(context.args[1]))
    if not client.add_user(user):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return
    await update.message.reply_text(f"👤 {user.email} autorizado como {user.role.value}.")


async def remover_usuario_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = await get_ready_client(update, context)
    if client is None:
        return
    if not context.args:
        await update.message.reply_text("Uso: `/remover_usuario [email]`", parse_mode="Markdown")
        return
    if not client.delete_user(context.args[0].strip()):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return
    await update.message.reply_text(f"🗑️ {context.args[0].strip()} removido.")


async def config_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Liga ou desliga uma opção das configurações compartilhadas."""
    client = await get_ready_client(update, context)
    if client is None:
        return
    settings = client.store.settings
    args = [a.lower() for a in (context.args or [])]
    if len(args) != 2 or args[0] not in SETTING_FLAGS or args[1] not in TRUE_WORDS | FALSE_WORDS:
        lines = ["Uso: `/config [opcao] [sim|nao]`", ""]
        for name, attr in SETTING_FLAGS.items():
            lines.append(f"- {name}: {'sim' if getattr(settings, attr) else 'não'}")
        await update.message.reply_text("\n".join(lines), parse_mode="Markdown")
        return

    updated = dataclasses.replace(settings, **{SETTING_FLAGS[args[0]]: args[1] in TRUE_WORDS})
    if not client.update_settings(updated):
        await update.message.reply_text(NO_PERMISSION.format(role=client.role.value))
        return
    await update.message.reply_text("⚙️ Configuração salva.")
