# fluxo/core/session.py
import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from jose import JWTError, jwt

from fluxo.core.models import Transaction, UserProfile

logger = logging.getLogger(__name__)

USER_KEY = "gsc_user"
DARK_MODE_KEY = "gsc_dark_mode"
LEFT_GROUP_KEY = "gsc_left_group"
RIGHT_GROUP_KEY = "gsc_right_group"
PENDING_KEY = "gsc_pending_transactions"


class LocalStorage:
    """Armazenamento chave/valor em um arquivo JSON, no estilo do localStorage do navegador."""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Não foi possível ler %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class SessionStore:
    """Usuário logado e preferências. Cada chave é restaurada de forma independente."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def load_user(self) -> Optional[UserProfile]:
        data = self.storage.get(USER_KEY)
        if not isinstance(data, dict) or not data.get("email"):
            return None
        return UserProfile.from_dict(data)

    def save_user(self, profile: UserProfile) -> None:
        self.storage.set(USER_KEY, profile.to_dict())

    def clear_user(self) -> None:
        self.storage.remove(USER_KEY)

    @property
    def dark_mode(self) -> bool:
        return self.storage.get(DARK_MODE_KEY) is True

    @dark_mode.setter
    def dark_mode(self, value: bool) -> None:
        self.storage.set(DARK_MODE_KEY, bool(value))

    def load_group(self, side: str) -> List[str]:
        value = self.storage.get(self._group_key(side), [])
        return [str(v) for v in value] if isinstance(value, list) else []

    def save_group(self, side: str, establishment_ids) -> None:
        self.storage.set(self._group_key(side), [str(i) for i in establishment_ids])

    def load_pending(self) -> List[Transaction]:
        """Lançamentos ainda não confirmados pela planilha, para sobreviver a um reinício."""
        value = self.storage.get(PENDING_KEY, [])
        if not isinstance(value, list):
            return []
        return [Transaction.from_dict(item) for item in value if isinstance(item, dict)]

    def save_pending(self, transactions: Iterable[Transaction]) -> None:
        self.storage.set(PENDING_KEY, [t.to_dict() for t in transactions])

    @staticmethod
    def _group_key(side: str) -> str:
        if side == "left":
            return LEFT_GROUP_KEY
        if side == "right":
            return RIGHT_GROUP_KEY
        raise ValueError(f"Grupo inválido: {side}")


def profile_from_id_token(token: str) -> UserProfile:
    """Lê e-mail, nome e foto do payload de um ID token (JWT) do provedor de identidade.

    A assinatura não é verificada aqui; isso fica a cargo do provedor.
    """
    try:
        payload = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise ValueError(f"Token de identidade inválido: {e}") from e
    return UserProfile(
        email=str(payload.get("email") or ""),
        name=str(payload.get("name") or ""),
        picture=str(payload.get("picture") or ""),
        token=token,
    )
