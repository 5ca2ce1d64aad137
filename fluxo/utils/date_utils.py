# fluxo/utils/date_utils.py
import re
import datetime
from typing import Any, Optional

import pandas as pd

ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
BR_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def today_str(today: Optional[datetime.date] = None) -> str:
    return (today or datetime.date.today()).strftime("%Y-%m-%d")


def _checked(text: str, year: str, month: str, day: str) -> str:
    # Dia ou mês fora do calendário: devolve o texto original
    try:
        return datetime.date(int(year), int(month), int(day)).strftime("%Y-%m-%d")
    except ValueError:
        return text


def normalize_date(value: Any) -> str:
    """Converte a data vinda da planilha para AAAA-MM-DD.

    Aceita strings ISO ("2024-03-05T10:00:00Z" -> "2024-03-05"), o formato
    brasileiro DD/MM/AAAA e qualquer string que o pandas consiga interpretar.
    Vazio ou None vira a data de hoje; o que não for reconhecido volta como veio.
    Aplicar duas vezes não muda o resultado.
    """
    if value is None:
        return today_str()
    if isinstance(value, datetime.datetime):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, datetime.date):
        return value.strftime("%Y-%m-%d")

    text = str(value).strip()
    if not text:
        return today_str()

    match = ISO_PREFIX.match(text)
    if match:
        year, month, day = match.groups()
        return _checked(text, year, month, day)

    match = BR_DATE.match(text)
    if match:
        day, month, year = match.groups()
        return _checked(text, year, month, day)

    try:
        parsed = pd.to_datetime(text)
    except (ValueError, TypeError, OverflowError):
        return text
    if pd.isna(parsed):
        return text
    return parsed.strftime("%Y-%m-%d")


def last_days(days: int = 7, today: Optional[datetime.date] = None) -> list:
    """Lista de datas canônicas dos últimos `days` dias, da mais antiga para hoje."""
    today = today or datetime.date.today()
    return [today_str(today - datetime.timedelta(days=offset)) for offset in range(days - 1, -1, -1)]
