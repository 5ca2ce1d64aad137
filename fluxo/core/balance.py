# fluxo/core/balance.py
import datetime
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from fluxo.core.models import AppSettings, Transaction, TransactionType
from fluxo.utils.date_utils import last_days

# Saldos nunca são guardados: tudo é recalculado a partir das transações.


@dataclass(frozen=True)
class DailyFlow:
    date: str
    entrada: float
    saida: float


def balance_for(transactions: Iterable[Transaction], establishment_ids: Iterable[str]) -> float:
    """Soma (+Entrada, -Saída) das transações dos estabelecimentos informados. Conjunto vazio = 0."""
    ids = {str(i) for i in establishment_ids}
    if not ids:
        return 0.0
    return sum((t.signed_amount for t in transactions if t.establishment_id in ids), 0.0)


def balances_by_establishment(transactions: Iterable[Transaction]) -> Dict[str, float]:
    balances: Dict[str, float] = {}
    for t in transactions:
        balances[t.establishment_id] = balances.get(t.establishment_id, 0.0) + t.signed_amount
    return balances


def group_balances(transactions: Iterable[Transaction], settings: AppSettings) -> Dict[str, float]:
    """Saldos dos dois grupos do painel (esquerdo e direito)."""
    transactions = list(transactions)
    return {
        "left": balance_for(transactions, settings.left_group_ids),
        "right": balance_for(transactions, settings.right_group_ids),
    }


def daily_series(transactions: Iterable[Transaction], today: Optional[datetime.date] = None,
                 days: int = 7) -> List[DailyFlow]:
    """Entradas e saídas por dia nos últimos `days` dias (incluindo hoje), do mais antigo ao mais novo.

    A comparação é por igualdade da data canônica; dias sem movimento vêm zerados.
    """
    dates = last_days(days, today)
    entradas = dict.fromkeys(dates, 0.0)
    saidas = dict.fromkeys(dates, 0.0)
    for t in transactions:
        if t.date not in entradas:
            continue
        if t.type == TransactionType.ENTRADA:
            entradas[t.date] += t.amount
        else:
            saidas[t.date] += t.amount
    return [DailyFlow(date=d, entrada=entradas[d], saida=saidas[d]) for d in dates]
