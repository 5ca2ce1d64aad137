# fluxo/bot/commands/__init__.py

from .utils import start_command, help_command
from .session import login_command, logout_command, status_command, sync_command, tema_command
from .balance import (
    estabelecimentos_command,
    grafico_command,
    grupo_command,
    grupos_command,
    notas_command,
    relatorio_command,
    saldo_command,
)
from .ledger import editar_command, nota_command, transferir_command
from .admin import (
    atalho_command,
    config_command,
    editar_estabelecimento_command,
    novo_estabelecimento_command,
    remover_atalho_command,
    remover_usuario_command,
    usuario_command,
)
from .assistant import ia_command, sugestoes_command

# Nome do comando no Telegram -> função
ALL_COMMANDS = {
    "start": start_command,
    "help": help_command,
    "login": login_command,
    "logout": logout_command,
    "sync": sync_command,
    "status": status_command,
    "tema": tema_command,
    "estabelecimentos": estabelecimentos_command,
    "saldo": saldo_command,
    "grupos": grupos_command,
    "grupo": grupo_command,
    "grafico": grafico_command,
    "relatorio": relatorio_command,
    "notas": notas_command,
    "editar": editar_command,
    "transferir": transferir_command,
    "nota": nota_command,
    "atalho": atalho_command,
    "remover_atalho": remover_atalho_command,
    "novo_estabelecimento": novo_estabelecimento_command,
    "editar_estabelecimento": editar_estabelecimento_command,
    "usuario": usuario_command,
    "remover_usuario": remover_usuario_command,
    "config": config_command,
    "ia": ia_command,
    "sugestoes": sugestoes_command,
}
