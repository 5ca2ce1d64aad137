from .register_transaction import register_transaction
from .send_confirmation_message import send_confirmation_message
