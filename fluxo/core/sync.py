# fluxo/core/sync.py
"""Orquestrador de sincronização.

Toda mutação segue o mesmo protocolo em duas fases:

1. aplica no cache local imediatamente (otimista);
2. envia o comando para a planilha e, se o envio der certo, refaz a busca
   completa, que substitui a versão otimista pela do servidor.

Se o envio falhar, o cache fica como está até a próxima sincronização bem
sucedida. Nada é desfeito e nenhuma exceção chega a quem chamou.

Lançamentos pendentes ficam salvos na sessão e são reenviados no início de
cada sincronização; os que continuarem recusados sobrevivem ao snapshot.
"""
import dataclasses
import datetime
import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional, Set

from fluxo.core import balance
from fluxo.core import store as ledger
from fluxo.core.access import AccessGate, Permission
from fluxo.core.errors import InvalidTransfer, PermissionDenied, SyncError
from fluxo.core.gateway import Action, SheetGateway
from fluxo.core.models import (
    GENERAL_NOTE_SCOPE, AppSettings, AuthorizedUser, Establishment, Role, Transaction, UserProfile,
)
from fluxo.core.session import SessionStore
from fluxo.core.store import LedgerStore, apply_snapshot, normalize_snapshot
from fluxo.core.transfers import build_transfer

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


class SyncOrchestrator:
    def __init__(self, gateway: Optional[SheetGateway], store: Optional[LedgerStore] = None,
                 access: Optional[AccessGate] = None, session: Optional[SessionStore] = None,
                 now: Callable[[], datetime.datetime] = datetime.datetime.now):
        # gateway None = nenhuma planilha configurada (modo local)
        self.gateway = gateway
        self.store = store or LedgerStore()
        self.access = access or AccessGate()
        self.session = session
        self.now = now
        self.status = SyncStatus.IDLE
        self.last_sync: Optional[datetime.datetime] = None
        # Ids já aceitos pela planilha que aguardam a próxima busca
        self._posted: Set[str] = set()
        self.user: Optional[UserProfile] = session.load_user() if session else None
        if session:
            self.store.apply(ledger.retain_pending, session.load_pending())

    # --- Estado da sincronização ---

    @property
    def is_local(self) -> bool:
        return self.gateway is None

    @property
    def is_syncing(self) -> bool:
        return self.status == SyncStatus.SYNCING

    @property
    def sync_error(self) -> bool:
        return self.status == SyncStatus.ERROR

    @property
    def role(self) -> Optional[Role]:
        return self.access.role

    @property
    def pending_count(self) -> int:
        return len(self.store.pending_transactions())

    @property
    def acting_email(self) -> str:
        return self.user.email if self.user else "unknown"

    def trigger_sync(self) -> bool:
        """Busca o snapshot completo e substitui o cache. Retorna False em caso de erro.

        Em caso de falha o cache e o estado de acesso ficam como estavam.
        Chamadas sobrepostas não são agrupadas: a última resposta prevalece.
        """
        if self.gateway is None:
            self.access.grant_local_admin()
            return True

        self.status = SyncStatus.SYNCING
        try:
            return self._pull()
        finally:
            if self.status == SyncStatus.SYNCING:
                self.status = SyncStatus.ERROR

    def _push_pending(self) -> List[Transaction]:
        """Reenvia os lançamentos pendentes, do mais antigo ao mais novo.

        Os que a planilha já aceitou e só esperam a próxima busca não são
        reenviados. Retorna os que continuam sem confirmação.
        """
        unconfirmed = []
        for transaction in reversed(self.store.pending_transactions()):
            if transaction.id in self._posted:
                continue
            action = Action.EDIT_TRANSACTION if transaction.is_edited else Action.ADD_TRANSACTION
            author = transaction.user or self.acting_email
            if self.gateway.post_action(action, transaction.to_dict(), author):
                self._posted.add(transaction.id)
            else:
                logger.warning("Transação %s segue pendente.", transaction.id)
                unconfirmed.append(transaction)
        return unconfirmed

    def _pull(self) -> bool:
        unconfirmed = self._push_pending()
        try:
            snapshot = normalize_snapshot(self.gateway.fetch_snapshot())
        except (SyncError, TypeError, ValueError) as e:
            logger.error("Erro no sync: %s", e)
            self.status = SyncStatus.ERROR
            return False

        self.store.apply(apply_snapshot, snapshot)
        self.store.apply(ledger.retain_pending, reversed(unconfirmed))
        self._posted.clear()
        self._save_pending()
        self.last_sync = self.now()
        self.status = SyncStatus.IDLE
        logger.info(
            "Sync concluído: %d estabelecimentos, %d transações.",
            len(snapshot.establishments), len(snapshot.transactions),
        )
        if self.user is not None:
            self.access.resolve(snapshot.authorized_users, self.user.email)
        return True

    def login(self, profile: UserProfile) -> bool:
        if self.session:
            self.session.save_user(profile)
        self.user = profile
        self.access.reset()
        return self.trigger_sync()

    def logout(self) -> None:
        if self.session:
            self.session.clear_user()
        self.user = None
        self.access.reset()

    # --- Protocolo de mutação ---

    def _save_pending(self) -> None:
        if self.session:
            self.session.save_pending(self.store.pending_transactions())

    def _submit(self, permission: Permission, action: Action, transition, *args, payload,
                transaction_id: Optional[str] = None) -> bool:
        try:
            self.access.require(permission, action.value)
        except PermissionDenied as e:
            logger.debug("Mutação ignorada: %s", e)
            return False

        self.store.apply(transition, *args)
        if transaction_id is not None:
            self._posted.discard(transaction_id)
            self._save_pending()
        if self.gateway is None:
            return True

        if self.gateway.post_action(action, payload, self.acting_email):
            if transaction_id is not None:
                self._posted.add(transaction_id)
            self.trigger_sync()
        else:
            logger.warning("Ação %s não confirmada pela planilha; mantida apenas localmente.", action.value)
        return True

    def add_transaction(self, transaction: Transaction) -> bool:
        transaction = dataclasses.replace(transaction, user=self.acting_email, is_synced=False)
        return self._submit(
            Permission.EDIT_LEDGER, Action.ADD_TRANSACTION,
            ledger.add_transaction, transaction,
            payload=transaction.to_dict(),
            transaction_id=transaction.id,
        )

    def edit_transaction(self, transaction: Transaction) -> bool:
        if self.store.find_transaction(transaction.id) is None:
            logger.warning("Transação %s não encontrada no cache.", transaction.id)
            return False
        edited = dataclasses.replace(transaction, is_synced=False, is_edited=True)
        return self._submit(
            Permission.EDIT_LEDGER, Action.EDIT_TRANSACTION,
            ledger.edit_transaction, transaction,
            payload=edited.to_dict(),
            transaction_id=transaction.id,
        )

    def transfer(self, source_id: str, target_id: str, amount: float, observation: str,
                 date: Optional[str] = None) -> bool:
        """Transferência entre estabelecimentos: dois lançamentos, cada um com seu próprio ciclo."""
        if not self.access.can(Permission.EDIT_LEDGER):
            logger.debug("Transferência ignorada para o papel %s", self.role)
            return False
        source = self.store.find_establishment(source_id)
        target = self.store.find_establishment(target_id)
        if source is None or target is None:
            raise InvalidTransfer("Estabelecimento de origem ou destino não encontrado.")
        outgoing, incoming = build_transfer(source, target, amount, observation, self.acting_email, date)
        if not self.add_transaction(outgoing):
            return False
        if not self.add_transaction(incoming):
            # A busca após a saída pode ter mudado o papel de quem transfere
            logger.warning("Transferência incompleta: saída %s registrada sem a entrada.", outgoing.id)
            return False
        return True

    def add_establishment(self, establishment: Establishment) -> bool:
        return self._submit(
            Permission.MANAGE_ESTABLISHMENTS, Action.ADD_ESTABLISHMENT,
            ledger.add_establishment, establishment,
            payload=establishment.to_dict(),
        )

    def edit_establishment(self, establishment: Establishment) -> bool:
        return self._submit(
            Permission.MANAGE_ESTABLISHMENTS, Action.EDIT_ESTABLISHMENT,
            ledger.edit_establishment, establishment,
            payload=establishment.to_dict(),
        )

    def add_user(self, user: AuthorizedUser) -> bool:
        return self._submit(
            Permission.MANAGE_USERS, Action.ADD_USER,
            ledger.add_user, user,
            payload=user.to_dict(),
        )

    def edit_user(self, user: AuthorizedUser) -> bool:
        return self._submit(
            Permission.MANAGE_USERS, Action.EDIT_USER,
            ledger.edit_user, user,
            payload=user.to_dict(),
        )

    def delete_user(self, email: str) -> bool:
        return self._submit(
            Permission.MANAGE_USERS, Action.DELETE_USER,
            ledger.delete_user, email,
            payload={"email": email},
        )

    def update_note(self, text: str, scope: str = GENERAL_NOTE_SCOPE) -> bool:
        return self._submit(
            Permission.EDIT_LEDGER, Action.UPDATE_NOTE,
            ledger.update_note, scope, text,
            payload={"scope": scope, "text": text},
        )

    def update_settings(self, settings: AppSettings) -> bool:
        return self._submit(
            Permission.MANAGE_SETTINGS, Action.UPDATE_SETTINGS,
            ledger.update_settings, settings,
            payload=settings.to_dict(),
        )

    def add_ready_description(self, description: str) -> bool:
        description = description.strip()
        current = self.store.settings
        if not description or description in current.ready_descriptions:
            return False
        return self._update_descriptions(current.ready_descriptions + (description,))

    def remove_ready_description(self, description: str) -> bool:
        current = self.store.settings
        if description not in current.ready_descriptions:
            return False
        return self._update_descriptions(tuple(d for d in current.ready_descriptions if d != description))

    def _update_descriptions(self, descriptions) -> bool:
        settings = dataclasses.replace(self.store.settings, ready_descriptions=tuple(descriptions))
        return self._submit(
            Permission.MANAGE_DESCRIPTIONS, Action.UPDATE_SETTINGS,
            ledger.update_settings, settings,
            payload=settings.to_dict(),
        )

    # --- Leituras derivadas ---

    def balance_for(self, establishment_ids: Iterable[str]) -> float:
        return balance.balance_for(self.store.transactions, establishment_ids)

    def daily_series(self, today: Optional[datetime.date] = None) -> List[balance.DailyFlow]:
        return balance.daily_series(self.store.transactions, today)

    def select_group(self, side: str, establishment_ids: Iterable[str]) -> None:
        """Seleção de grupo do painel; fica só na sessão local, sem papel exigido."""
        if self.session is None:
            raise RuntimeError("Sem sessão local para guardar a seleção de grupos.")
        self.session.save_group(side, establishment_ids)

    def group_balances(self) -> dict:
        """Saldos dos grupos do painel. A seleção salva na sessão tem precedência sobre a da planilha."""
        settings = self.store.settings
        if self.session:
            settings = dataclasses.replace(
                settings,
                left_group_ids=tuple(self.session.load_group("left")) or settings.left_group_ids,
                right_group_ids=tuple(self.session.load_group("right")) or settings.right_group_ids,
            )
        return balance.group_balances(self.store.transactions, settings)
