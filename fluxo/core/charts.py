# fluxo/core/charts.py
import io
import contextlib
import datetime
from typing import Iterable, Optional, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import pandas as pd

from fluxo.core.balance import balances_by_establishment, daily_series
from fluxo.core.models import Establishment, Transaction

# Configurações globais para os gráficos (cores, fontes, etc.)
plt.style.use('seaborn-v0_8-darkgrid')
plt.rcParams['font.family'] = 'sans-serif'
plt.rcParams['font.size'] = 10
plt.rcParams['axes.labelsize'] = 12
plt.rcParams['axes.titlesize'] = 14
plt.rcParams['legend.fontsize'] = 10

COLORS = {
    'Entrada': '#28a745',
    'Saída': '#dc3545',
    'Saldo': '#007bff',
}


def _theme(dark: bool):
    return plt.style.context("dark_background") if dark else contextlib.nullcontext()


def _to_png(fig) -> io.BytesIO:
    buf = io.BytesIO()
    fig.savefig(buf, format='png', dpi=150)
    buf.seek(0)
    plt.close(fig)
    return buf


def generate_trend_chart(transactions: Iterable[Transaction], today: Optional[datetime.date] = None,
                         dark: bool = False) -> Union[io.BytesIO, None]:
    """Gráfico de barras de entradas e saídas dos últimos 7 dias. None se não houver movimento."""
    series = daily_series(transactions, today)
    if not any(day.entrada or day.saida for day in series):
        return None

    df = pd.DataFrame(
        {
            'Entrada': [day.entrada for day in series],
            'Saída': [day.saida for day in series],
        },
        index=[datetime.date.fromisoformat(day.date).strftime('%d/%m') for day in series],
    )

    with _theme(dark):
        fig, ax = plt.subplots(figsize=(10, 6))
        df.plot(kind='bar', ax=ax, color=[COLORS['Entrada'], COLORS['Saída']])
        ax.set_title('Fluxo dos Últimos 7 Dias', fontweight='bold')
        ax.set_ylabel('Valor (R$)')
        ax.set_xlabel('Dia')
        ax.tick_params(axis='x', rotation=0)
        ax.yaxis.set_major_formatter(mticker.FormatStrFormatter('R$%.2f'))
        ax.grid(axis='y', linestyle='--', alpha=0.7)
        fig.tight_layout()
        return _to_png(fig)


def generate_balance_chart(transactions: Iterable[Transaction], establishments: Iterable[Establishment],
                           dark: bool = False) -> Union[io.BytesIO, None]:
    """Saldo atual de cada estabelecimento."""
    balances = balances_by_establishment(transactions)
    names = {e.id: e.name for e in establishments}
    if not balances:
        return None

    series = pd.Series({names.get(est_id, est_id): value for est_id, value in balances.items()}).sort_values()
    colors = [COLORS['Entrada'] if value >= 0 else COLORS['Saída'] for value in series.values]

    with _theme(dark):
        fig, ax = plt.subplots(figsize=(10, max(3, 0.6 * len(series) + 1)))
        series.plot(kind='barh', ax=ax, color=colors)
        ax.set_title('Saldo por Estabelecimento', fontweight='bold')
        ax.set_xlabel('Saldo (R$)')
        ax.xaxis.set_major_formatter(mticker.FormatStrFormatter('R$%.2f'))
        for container in ax.containers:
            ax.bar_label(container, fmt='R$%.2f', fontsize=8, padding=3)
        fig.tight_layout()
        return _to_png(fig)
