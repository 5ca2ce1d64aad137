import logging
from collections import OrderedDict
from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes

from fluxo.config import MAX_CLIENTS
from fluxo.core.access import AccessState
from fluxo.core.sync import SyncOrchestrator

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = (
    "🚫 Seu e-mail ({email}) foi autenticado, mas você ainda não tem permissão para acessar este sistema.\n"
    "Solicite ao administrador que adicione seu e-mail na aba 'Usuarios' da planilha de controle "
    "e depois use /sync para verificar novamente."
)


def get_client(context: ContextTypes.DEFAULT_TYPE, chat_id: int) -> SyncOrchestrator:
    """Um orquestrador por chat, criado sob demanda.

    Guarda no máximo `max_clients` em memória; o usado há mais tempo sai primeiro
    e é recriado da sessão em disco quando o chat voltar.
    """
    clients = context.bot_data.setdefault("clients", OrderedDict())
    if chat_id in clients:
        clients.move_to_end(chat_id)
        return clients[chat_id]

    clients[chat_id] = context.bot_data["client_factory"](chat_id)
    limit = context.bot_data.get("max_clients") or MAX_CLIENTS
    while len(clients) > limit:
        evicted, _ = clients.popitem(last=False)
        logger.debug("Orquestrador do chat %s liberado da memória.", evicted)
    return clients[chat_id]


async def get_ready_client(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Optional[SyncOrchestrator]:
    """Cliente logado e com acesso resolvido; responde ao usuário e retorna None caso contrário."""
    client = get_client(context, update.effective_chat.id)
    if client.user is None:
        await update.message.reply_text("🔑 Faça login primeiro: `/login seu@email.com`", parse_mode="Markdown")
        return None

    if client.access.state == AccessState.UNKNOWN:
        client.trigger_sync()

    if client.access.state == AccessState.DENIED:
        await update.message.reply_text(ACCESS_DENIED_MESSAGE.format(email=client.user.email))
        return None
    if client.access.state == AccessState.UNKNOWN:
        await update.message.reply_text(
            "⚠️ Não consegui verificar suas credenciais na planilha. Tente novamente com /sync."
        )
        return None
    return client


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Envia uma mensagem quando o comando /start é emitido."""
    await update.message.reply_text(
        "Olá! Sou o bot do **Fluxo de Caixa** da rede. 🏨🍝\n\n"
        "Comece com `/login seu@email.com` (ou o ID token do Google).\n"
        "Depois use `/saldo` para ver os saldos e `/lancar` para registrar entradas e saídas.\n"
        "Digite /help para ver todos os comandos.",
        parse_mode="Markdown",
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Envia uma mensagem quando o comando /help é emitido."""
    await update.message.reply_text(
        "**Sessão:**\n"
        "- `/login [email ou id_token]` e `/logout`\n"
        "- `/sync`: sincroniza com a planilha.\n"
        "- `/status`: situação da sincronização e pendências.\n"
        "- `/tema [escuro|claro]`: tema dos gráficos.\n\n"
        "**Consultas:**\n"
        "- `/estabelecimentos`: lista os estabelecimentos e seus ids.\n"
        "- `/saldo [id ...]`: saldo por estabelecimento ou somado para os ids informados.\n"
        "- `/grupos`: saldos dos dois grupos do painel. `/grupo [esquerdo|direito] [id ...]` escolhe os grupos.\n"
        "- `/grafico`: entradas e saídas dos últimos 7 dias.\n"
        "- `/relatorio [AAAA-MM-DD] [AAAA-MM-DD] [id ...]`: totais do período.\n"
        "- `/notas`: mural de anotações.\n\n"
        "**Lançamentos:**\n"
        "- `/lancar [id] [entrada|saida] [valor] [descrição]`\n"
        "- `/editar [id_transacao] [valor] [descrição opcional]`\n"
        "- `/transferir [origem] [destino] [valor] [motivo]`\n"
        "- `/nota [texto]`: atualiza o mural geral.\n"
        "- `/ia [pergunta]`: pergunta ao assistente financeiro.\n"
        "- `/sugestoes [id] [entrada|saida]`: sugestões de descrição.\n\n"
        "**Administração:**\n"
        "- `/atalho [descrição]` e `/remover_atalho [descrição]`: descrições rápidas.\n"
        "- `/novo_estabelecimento [email] [nome]` e `/editar_estabelecimento [id] [email] [nome]`\n"
        "- `/usuario [email] [Admin|Financeiro|Convidado]` e `/remover_usuario [email]`\n"
        "- `/config [opcao] [sim|nao]`: notas, ia, grafico, push, resumo_semanal.",
        parse_mode="Markdown",
    )
