# fluxo/core/errors.py


class LedgerError(Exception):
    pass


class SyncError(LedgerError):
    """Falha ao obter o snapshot da planilha."""


class TransportFailure(SyncError):
    """Endpoint inacessível ou resposta com status de erro."""


class MalformedPayload(SyncError):
    """Snapshot sem as listas obrigatórias (establishments/transactions)."""


class PermissionDenied(LedgerError):
    """O papel atual não permite a mutação. Nunca sai dos pontos de entrada."""

    def __init__(self, action: str, role):
        self.action = action
        self.role = role
        super().__init__(f"{action} não permitido para o papel {role}")


class InvalidTransfer(LedgerError, ValueError):
    pass
