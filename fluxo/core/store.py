# fluxo/core/store.py
"""Cache local otimista.

O estado é um `LedgerState` imutável. Cada tipo de mutação é uma função pura
`(estado, ...) -> novo estado`; o `LedgerStore` só guarda o estado corrente e
aplica as transições. Assim o núcleo pode ser testado sem o bot.
"""
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fluxo.core.errors import MalformedPayload
from fluxo.core.models import (
    GENERAL_NOTE_SCOPE, AppSettings, AuthorizedUser, Establishment, Transaction,
)
from fluxo.utils.text_utils import normalize_email


@dataclass(frozen=True)
class LedgerState:
    transactions: Tuple[Transaction, ...] = ()
    establishments: Tuple[Establishment, ...] = ()
    authorized_users: Tuple[AuthorizedUser, ...] = ()
    notes: Dict[str, str] = field(default_factory=dict)
    settings: AppSettings = field(default_factory=AppSettings)


@dataclass(frozen=True)
class Snapshot:
    """Snapshot da planilha já normalizado. notes/settings None = ausentes na resposta."""
    establishments: Tuple[Establishment, ...]
    transactions: Tuple[Transaction, ...]
    authorized_users: Tuple[AuthorizedUser, ...]
    notes: Optional[Dict[str, str]] = None
    settings: Optional[AppSettings] = None


# --- Normalização do snapshot ---

def normalize_transactions(raw: Iterable[Dict[str, Any]]) -> Tuple[Transaction, ...]:
    """Datas em AAAA-MM-DD, isEdited booleano e tudo marcado como sincronizado."""
    return tuple(
        dataclasses.replace(Transaction.from_dict(item), is_synced=True)
        for item in raw
        if isinstance(item, dict)
    )


def normalize_notes(raw: Any) -> Optional[Dict[str, str]]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return {str(scope): "" if text is None else str(text) for scope, text in raw.items()}
    # Planilhas antigas mandavam um texto único para o mural geral
    return {GENERAL_NOTE_SCOPE: str(raw)}


def _list_section(payload: Dict[str, Any], key: str, required: bool = True) -> list:
    value = payload.get(key)
    if value is None and not required:
        return []
    if not isinstance(value, list):
        raise MalformedPayload(f"Seção '{key}' do snapshot não é uma lista.")
    return value


def normalize_snapshot(payload: Dict[str, Any]) -> Snapshot:
    """Converte o JSON da planilha em um Snapshot. Aplicar duas vezes dá o mesmo resultado.

    Levanta MalformedPayload se alguma das listas vier em outro formato.
    """
    if not isinstance(payload, dict):
        raise MalformedPayload("Snapshot não é um objeto.")
    establishments = _list_section(payload, "establishments")
    transactions = _list_section(payload, "transactions")
    users = _list_section(payload, "authorizedUsers", required=False)
    settings = payload.get("settings")
    return Snapshot(
        establishments=tuple(Establishment.from_dict(e) for e in establishments if isinstance(e, dict)),
        transactions=normalize_transactions(transactions),
        authorized_users=tuple(AuthorizedUser.from_dict(u) for u in users if isinstance(u, dict)),
        notes=normalize_notes(payload.get("notes")),
        settings=AppSettings.from_dict(settings) if isinstance(settings, dict) else None,
    )


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    data = {
        "establishments": [e.to_dict() for e in snapshot.establishments],
        "transactions": [t.to_dict() for t in snapshot.transactions],
        "authorizedUsers": [u.to_dict() for u in snapshot.authorized_users],
    }
    if snapshot.notes is not None:
        data["notes"] = dict(snapshot.notes)
    if snapshot.settings is not None:
        data["settings"] = snapshot.settings.to_dict()
    return data


# --- Transições puras ---

def apply_snapshot(state: LedgerState, snapshot: Snapshot) -> LedgerState:
    """O snapshot substitui o cache; a versão do servidor sempre vence."""
    return dataclasses.replace(
        state,
        establishments=snapshot.establishments,
        transactions=snapshot.transactions,
        authorized_users=snapshot.authorized_users,
        notes=dict(snapshot.notes) if snapshot.notes is not None else state.notes,
        settings=snapshot.settings if snapshot.settings is not None else state.settings,
    )


def retain_pending(state: LedgerState, pending: Iterable[Transaction]) -> LedgerState:
    """Recoloca no topo os lançamentos locais que a planilha ainda não conhece.

    Ids que vieram no snapshot não são tocados: a versão do servidor vence.
    """
    known = {t.id for t in state.transactions}
    kept = tuple(dataclasses.replace(t, is_synced=False) for t in pending if t.id not in known)
    return dataclasses.replace(state, transactions=kept + state.transactions)


def add_transaction(state: LedgerState, transaction: Transaction) -> LedgerState:
    # Mais recente primeiro
    pending = dataclasses.replace(transaction, is_synced=False)
    return dataclasses.replace(state, transactions=(pending,) + state.transactions)


def edit_transaction(state: LedgerState, transaction: Transaction) -> LedgerState:
    edited = dataclasses.replace(transaction, is_synced=False, is_edited=True)
    return dataclasses.replace(
        state,
        transactions=tuple(edited if t.id == transaction.id else t for t in state.transactions),
    )


def add_establishment(state: LedgerState, establishment: Establishment) -> LedgerState:
    return dataclasses.replace(state, establishments=state.establishments + (establishment,))


def edit_establishment(state: LedgerState, establishment: Establishment) -> LedgerState:
    return dataclasses.replace(
        state,
        establishments=tuple(establishment if e.id == establishment.id else e for e in state.establishments),
    )


def add_user(state: LedgerState, user: AuthorizedUser) -> LedgerState:
    # E-mail é a chave: um cadastro repetido substitui o anterior
    key = normalize_email(user.email)
    others = tuple(u for u in state.authorized_users if normalize_email(u.email) != key)
    return dataclasses.replace(state, authorized_users=others + (user,))


def edit_user(state: LedgerState, user: AuthorizedUser) -> LedgerState:
    key = normalize_email(user.email)
    return dataclasses.replace(
        state,
        authorized_users=tuple(user if normalize_email(u.email) == key else u for u in state.authorized_users),
    )


def delete_user(state: LedgerState, email: str) -> LedgerState:
    key = normalize_email(email)
    return dataclasses.replace(
        state,
        authorized_users=tuple(u for u in state.authorized_users if normalize_email(u.email) != key),
    )


def update_note(state: LedgerState, scope: str, text: str) -> LedgerState:
    notes = dict(state.notes)
    notes[scope] = text
    return dataclasses.replace(state, notes=notes)


def update_settings(state: LedgerState, settings: AppSettings) -> LedgerState:
    return dataclasses.replace(state, settings=settings)


class LedgerStore:
    """Guarda o estado corrente e aplica as transições."""

    def __init__(self, state: Optional[LedgerState] = None):
        self.state = state or LedgerState()

    def apply(self, transition, *args) -> LedgerState:
        self.state = transition(self.state, *args)
        return self.state

    # Atalhos de leitura
    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self.state.transactions

    @property
    def establishments(self) -> Tuple[Establishment, ...]:
        return self.state.establishments

    @property
    def settings(self) -> AppSettings:
        return self.state.settings

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self.state.transactions if t.id == transaction_id), None)

    def find_establishment(self, establishment_id: str) -> Optional[Establishment]:
        return next((e for e in self.state.establishments if e.id == str(establishment_id)), None)

    def pending_transactions(self) -> List[Transaction]:
        return [t for t in self.state.transactions if not t.is_synced]
