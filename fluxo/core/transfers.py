# fluxo/core/transfers.py
from typing import Optional, Tuple

from fluxo.core.errors import InvalidTransfer
from fluxo.core.models import Establishment, Transaction, TransactionStatus, TransactionType


def build_transfer(source: Establishment, target: Establishment, amount: float, observation: str,
                   user: str, date: Optional[str] = None) -> Tuple[Transaction, Transaction]:
    """Monta o par de lançamentos de uma transferência: Saída na origem e Entrada no destino.

    Os dois lançamentos se anulam no saldo consolidado da rede.
    """
    if source.id == target.id:
        raise InvalidTransfer("A origem e o destino não podem ser o mesmo estabelecimento.")
    observation = (observation or "").strip()
    if not observation:
        raise InvalidTransfer("O motivo da transferência é obrigatório.")
    if amount is None or amount <= 0:
        raise InvalidTransfer("O valor da transferência deve ser maior que zero.")

    outgoing = Transaction.create(
        establishment_id=source.id,
        type=TransactionType.SAIDA,
        amount=amount,
        description=f"Transferência para {target.name} - {observation}",
        user=user,
        date=date,
        observations=observation,
        status=TransactionStatus.APROVADO,
    )
    incoming = Transaction.create(
        establishment_id=target.id,
        type=TransactionType.ENTRADA,
        amount=amount,
        description=f"Recebido de {source.name} - {observation}",
        user=user,
        date=outgoing.date,
        observations=observation,
        status=TransactionStatus.APROVADO,
    )
    return outgoing, incoming
