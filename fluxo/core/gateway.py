# fluxo/core/gateway.py
import time
import logging
from enum import Enum
from typing import Any, Dict, Optional

import requests

from fluxo.core.errors import MalformedPayload, TransportFailure

logger = logging.getLogger(__name__)


class Action(str, Enum):
    ADD_TRANSACTION = "ADD_TRANSACTION"
    EDIT_TRANSACTION = "EDIT_TRANSACTION"
    ADD_ESTABLISHMENT = "ADD_ESTABLISHMENT"
    EDIT_ESTABLISHMENT = "EDIT_ESTABLISHMENT"
    ADD_USER = "ADD_USER"
    EDIT_USER = "EDIT_USER"
    DELETE_USER = "DELETE_USER"
    UPDATE_NOTE = "UPDATE_NOTE"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"


class SheetGateway:
    """Cliente HTTP do App da Web da planilha. Não guarda estado nem faz merge."""

    def __init__(self, url: str, timeout: Optional[float] = None):
        self.url = url
        self.timeout = timeout

    def fetch_snapshot(self) -> Dict[str, Any]:
        """Busca o estado completo (estabelecimentos, transações, usuários, notas, configurações).

        Levanta TransportFailure se a requisição falhar e MalformedPayload se o
        corpo não trouxer as listas de estabelecimentos e transações.
        """
        try:
            # timestamp na query para evitar cache
            response = requests.get(self.url, params={"t": int(time.time() * 1000)}, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TransportFailure(f"Falha ao conectar com a planilha: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedPayload(f"Resposta da planilha não é JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedPayload("Resposta da planilha não é um objeto.")
        for key in ("establishments", "transactions"):
            if not isinstance(data.get(key), list):
                raise MalformedPayload(f"Resposta da planilha sem a lista '{key}'.")
        return data

    def post_action(self, action: Action, payload: Any, user: str) -> bool:
        """Envia um comando de mutação. Sucesso = requisição concluída; o corpo da resposta é ignorado."""
        body = {"action": Action(action).value, "payload": payload, "user": user}
        try:
            response = requests.post(
                self.url,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.error("Erro ao executar ação %s na planilha: %s", body["action"], e)
            return False
