# fluxo/core/models.py
import uuid
import datetime
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional, Tuple, Dict, Any

from fluxo.utils.date_utils import normalize_date, today_str
from fluxo.utils.text_utils import coerce_amount, coerce_flag

# Os dicionários trocados com a planilha usam camelCase (formato do Apps Script).
# Aqui tudo vira dataclass imutável; as transições do cache geram cópias.

GENERAL_NOTE_SCOPE = "GENERAL"


class TransactionType(str, Enum):
    ENTRADA = "Entrada"
    SAIDA = "Saída"

    @classmethod
    def parse(cls, value: Any) -> "TransactionType":
        # Tudo que não for Entrada reduz o saldo
        if isinstance(value, cls):
            return value
        if str(value or "").strip().lower() == "entrada":
            return cls.ENTRADA
        return cls.SAIDA


class TransactionStatus(str, Enum):
    PENDENTE = "Pendente"
    APROVADO = "Aprovado"
    REJEITADO = "Rejeitado"

    @classmethod
    def parse(cls, value: Any) -> "TransactionStatus":
        for status in cls:
            if str(value or "").strip().lower() == status.value.lower():
                return status
        return cls.PENDENTE


class Role(str, Enum):
    ADMIN = "Admin"
    FINANCEIRO = "Financeiro"
    CONVIDADO = "Convidado"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        text = str(value or "").strip().lower()
        for role in cls:
            if text == role.value.lower():
                return role
        # Nomes antigos da aba 'Usuarios'
        if text == "operador":
            return cls.FINANCEIRO
        return cls.CONVIDADO


@dataclass(frozen=True)
class Transaction:
    id: str
    date: str
    timestamp: str
    establishment_id: str
    type: TransactionType
    amount: float
    description: str
    status: TransactionStatus = TransactionStatus.APROVADO
    user: str = ""
    observations: Optional[str] = None
    is_synced: bool = False
    is_edited: bool = False

    @property
    def signed_amount(self) -> float:
        return self.amount if self.type == TransactionType.ENTRADA else -self.amount

    @classmethod
    def create(cls, establishment_id: str, type: TransactionType, amount: float, description: str,
               user: str = "", date: Optional[str] = None, observations: Optional[str] = None,
               status: TransactionStatus = TransactionStatus.APROVADO) -> "Transaction":
        """Nova transação com id gerado no cliente, ainda não sincronizada."""
        if float(amount) < 0:
            raise ValueError("O valor da transação não pode ser negativo.")
        return cls(
            id=str(uuid.uuid4()),
            date=normalize_date(date) if date else today_str(),
            timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
            establishment_id=str(establishment_id),
            type=TransactionType.parse(type),
            amount=float(amount),
            description=description,
            status=status,
            user=user,
            observations=observations,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        observations = data.get("observations")
        return cls(
            id=str(data.get("id", "")),
            date=normalize_date(data.get("date")),
            timestamp=str(data.get("timestamp") or ""),
            establishment_id=str(data.get("establishmentId", "")),
            type=TransactionType.parse(data.get("type")),
            amount=coerce_amount(data.get("amount")),
            description=str(data.get("description") or ""),
            status=TransactionStatus.parse(data.get("status")),
            user=str(data.get("user") or ""),
            observations=str(observations) if observations not in (None, "") else None,
            is_synced=coerce_flag(data.get("isSynced")),
            is_edited=coerce_flag(data.get("isEdited")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "timestamp": self.timestamp,
            "establishmentId": self.establishment_id,
            "type": self.type.value,
            "amount": self.amount,
            "description": self.description,
            "observations": self.observations or "",
            "status": self.status.value,
            "user": self.user,
            "isSynced": self.is_synced,
            "isEdited": self.is_edited,
        }


@dataclass(frozen=True)
class Establishment:
    id: str
    name: str
    responsible_email: str = ""

    @classmethod
    def create(cls, name: str, responsible_email: str = "") -> "Establishment":
        return cls(id=str(uuid.uuid4()), name=name, responsible_email=responsible_email)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Establishment":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            responsible_email=str(data.get("responsibleEmail") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "responsibleEmail": self.responsible_email}


@dataclass(frozen=True)
class AuthorizedUser:
    email: str
    role: Role

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthorizedUser":
        return cls(email=str(data.get("email") or ""), role=Role.parse(data.get("role")))

    def to_dict(self) -> Dict[str, Any]:
        return {"email": self.email, "role": self.role.value}


@dataclass(frozen=True)
class AppSettings:
    ready_descriptions: Tuple[str, ...] = ()
    left_group_ids: Tuple[str, ...] = ()
    right_group_ids: Tuple[str, ...] = ()
    show_notes: bool = True
    show_ai: bool = True
    show_chart: bool = True
    push_notifications: bool = False
    weekly_email_summary: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        """Campos ausentes assumem o padrão (a planilha manda um objeto parcial)."""
        defaults = cls()

        def _ids(key, default):
            value = data.get(key)
            return tuple(str(v) for v in value) if isinstance(value, (list, tuple)) else default

        def _flag(key, default):
            return coerce_flag(data[key]) if key in data else default

        return cls(
            ready_descriptions=_ids("readyDescriptions", defaults.ready_descriptions),
            left_group_ids=_ids("leftGroupIds", defaults.left_group_ids),
            right_group_ids=_ids("rightGroupIds", defaults.right_group_ids),
            show_notes=_flag("showNotes", defaults.show_notes),
            show_ai=_flag("showAI", defaults.show_ai),
            show_chart=_flag("showChart", defaults.show_chart),
            push_notifications=_flag("pushNotifications", defaults.push_notifications),
            weekly_email_summary=_flag("weeklyEmailSummary", defaults.weekly_email_summary),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "readyDescriptions": list(self.ready_descriptions),
            "leftGroupIds": list(self.left_group_ids),
            "rightGroupIds": list(self.right_group_ids),
            "showNotes": self.show_notes,
            "showAI": self.show_ai,
            "showChart": self.show_chart,
            "pushNotifications": self.push_notifications,
            "weeklyEmailSummary": self.weekly_email_summary,
        }


@dataclass(frozen=True)
class UserProfile:
    email: str
    name: str = ""
    picture: str = ""
    token: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            email=str(data.get("email") or ""),
            name=str(data.get("name") or ""),
            picture=str(data.get("picture") or ""),
            token=str(data.get("token") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AnomalyCheckResult:
    is_anomalous: bool = False
    reason: str = ""


@dataclass(frozen=True)
class SuggestedTransaction:
    type: TransactionType
    amount: float
    description: str
    establishment_id: Optional[str] = None


@dataclass(frozen=True)
class AssistantResponse:
    answer: str
    suggested_transaction: Optional[SuggestedTransaction] = None
