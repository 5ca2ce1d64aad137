# fluxo/utils/text_utils.py
from typing import Any


def normalize_email(email: Any) -> str:
    """Chave de comparação de e-mails: minúsculas e sem espaços nas pontas.
    Ex: " A@X.com " -> "a@x.com"
    Aliases (ex: "a+tag@x.com") e normalização Unicode não são tratados.
    """
    return str(email or "").strip().lower()


def coerce_flag(value: Any) -> bool:
    """A planilha devolve booleanos como True ou como as strings "TRUE"/"true"."""
    return value is True or value in ("TRUE", "true")


def coerce_amount(value: Any) -> float:
    """Valor monetário; aceita vírgula decimal ("18,50"). Inválido vira 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if amount != amount:  # NaN
        return 0.0
    return amount


def format_brl(value: float) -> str:
    """Formata em reais no padrão brasileiro. Ex: 1234.5 -> "R$ 1.234,50" """
    sign = "-" if value < 0 else ""
    text = f"{abs(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"{sign}R$ {text}"
