# fluxo/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Configurações do Telegram
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")

# Planilha (Google Apps Script publicado como App da Web).
# Vazio = modo local, sem sincronização.
SHEET_API_URL = os.getenv("SHEET_API_URL", "")
# Sem timeout por padrão; defina em segundos para limitar as chamadas.
SHEET_API_TIMEOUT = float(os.getenv("SHEET_API_TIMEOUT")) if os.getenv("SHEET_API_TIMEOUT") else None

# Configurações do Gemini API
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_PRO_MODEL = os.getenv("GEMINI_PRO_MODEL", "gemini-1.5-pro")
AI_CONTEXT_LIMIT = 100

# Onde as sessões (usuário logado, preferências) são gravadas
STORAGE_DIR = os.getenv("STORAGE_DIR", ".fluxo")
# Orquestradores mantidos em memória; os mais antigos são recriados a partir da sessão
MAX_CLIENTS = int(os.getenv("MAX_CLIENTS", "500"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
