# --- Estados da Conversa ---
# Definidos antes dos imports: os handlers importam os estados deste pacote.
ASKING_CONFIRMATION = 0

from .handle_new_transaction import handle_new_transaction  # noqa: E402
from .handle_confirmation import handle_confirmation  # noqa: E402


ALL_HANDLERS = {
    handle_new_transaction,
    handle_confirmation,
}
