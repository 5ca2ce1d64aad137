from telegram import Update
from telegram.ext import ContextTypes

from fluxo.bot.commands.utils import ACCESS_DENIED_MESSAGE, get_client
from fluxo.core.access import AccessState
from fluxo.core.models import UserProfile
from fluxo.core.session import profile_from_id_token


async def login_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Inicia a sessão com um e-mail ou com o ID token do provedor de identidade."""
    if not context.args:
        await update.message.reply_text("Uso: `/login seu@email.com` ou `/login [id_token]`", parse_mode="Markdown")
        return

    credential = context.args[0].strip()
    if "@" in credential:
        profile = UserProfile(email=credential, name=" ".join(context.args[1:]))
    else:
        try:
            profile = profile_from_id_token(credential)
        except ValueError:
            await update.message.reply_text("❌ Token de identidade inválido.")
            return

    client = get_client(context, update.effective_chat.id)
    await update.message.reply_text("🔄 Verificando credenciais...")
    client.login(profile)
    await update.message.reply_text(_access_message(client))


async def logout_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = get_client(context, update.effective_chat.id)
    client.logout()
    await update.message.reply_text("👋 Sessão encerrada.")


async def sync_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Sincronização manual; também serve para reverificar um acesso negado."""
    client = get_client(context, update.effective_chat.id)
    if client.is_local:
        client.trigger_sync()
        await update.message.reply_text("💾 Nenhuma planilha configurada: operando em modo local.")
        return
    if client.is_syncing:
        await update.message.reply_text("⏳ Já existe uma sincronização em andamento.")
        return

    if client.trigger_sync():
        await update.message.reply_text(f"✅ Sincronizado às {client.last_sync:%H:%M:%S}.")
    else:
        await update.message.reply_text("❌ Falha ao sincronizar com a planilha. Os dados locais foram mantidos.")
        return
    if client.user is not None and client.access.state == AccessState.DENIED:
        await update.message.reply_text(ACCESS_DENIED_MESSAGE.format(email=client.user.email))


async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    client = get_client(context, update.effective_chat.id)
    last_sync = f"{client.last_sync:%d/%m/%Y %H:%M:%S}" if client.last_sync else "nunca"
    lines = [
        "**Status:**",
        f"- Usuário: {client.user.email if client.user else 'não logado'}",
        f"- Papel: {client.role.value if client.role else '-'} ({client.access.state.value})",
        f"- Modo: {'local' if client.is_local else 'planilha'}",
        f"- Sincronização: {client.status.value}{' ⚠️' if client.sync_error else ''}",
        f"- Último sync: {last_sync}",
        f"- Lançamentos pendentes: {client.pending_count}",
    ]
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


def _access_message(client) -> str:
    if client.access.state == AccessState.AUTHORIZED:
        return f"🎉 Bem-vindo(a), {client.user.name or client.user.email}! Papel: {client.role.value}."
    if client.access.state == AccessState.DENIED:
        return ACCESS_DENIED_MESSAGE.format(email=client.user.email)
    return "⚠️ Não consegui verificar suas credenciais agora. Tente novamente com /sync."


async def tema_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Tema dos gráficos enviados neste chat: `/tema escuro` ou `/tema claro`."""
    client = get_client(context, update.effective_chat.id)
    choice = (context.args or [""])[0].lower()
    if client.session is None or choice not in ("escuro", "claro"):
        await update.message.reply_text("Uso: `/tema [escuro|claro]`", parse_mode="Markdown")
        return
    client.session.dark_mode = choice == "escuro"
    await update.message.reply_text(f"🎨 Tema {choice} ativado para os gráficos.")
