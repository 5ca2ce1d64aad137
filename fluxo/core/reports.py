# fluxo/core/reports.py
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd

from fluxo.core.models import Establishment, Transaction, TransactionType

REPORT_COLUMNS = ["Estabelecimento", "Entradas", "Saídas", "Saldo"]


@dataclass(frozen=True)
class ReportSummary:
    total_entries: float
    total_exits: float
    balance: float
    count: int


def filter_transactions(transactions: Iterable[Transaction],
                        start: Optional[str] = None,
                        end: Optional[str] = None,
                        establishment_ids: Optional[Iterable[str]] = None) -> List[Transaction]:
    """Filtra por período (datas canônicas, limites inclusivos) e estabelecimentos.

    Retorna da data mais recente para a mais antiga. `establishment_ids=None`
    não filtra; uma lista vazia não seleciona nada.
    """
    ids = {str(i) for i in establishment_ids} if establishment_ids is not None else None
    selected = [
        t for t in transactions
        if (start is None or t.date >= start)
        and (end is None or t.date <= end)
        and (ids is None or t.establishment_id in ids)
    ]
    return sorted(selected, key=lambda t: t.date, reverse=True)


def summarize(transactions: Iterable[Transaction]) -> ReportSummary:
    transactions = list(transactions)
    entries = sum((t.amount for t in transactions if t.type == TransactionType.ENTRADA), 0.0)
    exits = sum((t.amount for t in transactions if t.type == TransactionType.SAIDA), 0.0)
    return ReportSummary(total_entries=entries, total_exits=exits, balance=entries - exits, count=len(transactions))


def summary_by_establishment(transactions: Iterable[Transaction],
                             establishments: Iterable[Establishment]) -> pd.DataFrame:
    """Tabela com entradas, saídas e saldo por estabelecimento, ordenada pelo nome."""
    names = {e.id: e.name for e in establishments}
    df = pd.DataFrame(
        [{"establishment_id": t.establishment_id, "type": t.type.value, "amount": t.amount} for t in transactions]
    )
    if df.empty:
        return pd.DataFrame(columns=REPORT_COLUMNS)

    # Estabelecimentos que sumiram da planilha aparecem como N/A
    df["Estabelecimento"] = df["establishment_id"].map(names).fillna("N/A")
    summary = df.groupby(["Estabelecimento", "type"])["amount"].sum().unstack(fill_value=0.0)
    summary["Entradas"] = summary.get(TransactionType.ENTRADA.value, 0.0)
    summary["Saídas"] = summary.get(TransactionType.SAIDA.value, 0.0)
    summary["Saldo"] = summary["Entradas"] - summary["Saídas"]
    return summary.reset_index()[REPORT_COLUMNS].sort_values("Estabelecimento").reset_index(drop=True)
