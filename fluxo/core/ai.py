# fluxo/core/ai.py
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

import google.generativeai as genai
from google.generativeai.types import HarmCategory, HarmBlockThreshold

from fluxo.config import AI_CONTEXT_LIMIT, GEMINI_MODEL, GEMINI_PRO_MODEL, GOOGLE_API_KEY
from fluxo.core.models import (
    AnomalyCheckResult, AssistantResponse, Establishment, SuggestedTransaction, Transaction, TransactionType,
)
from fluxo.utils.text_utils import coerce_amount

logger = logging.getLogger(__name__)

genai.configure(api_key=GOOGLE_API_KEY)

safety_settings = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
}

NETWORK_SCOPE = "Toda a Rede"
ASSISTANT_ERROR = "Erro ao processar sua pergunta com a IA."


def ask_gemini(prompt: str, model: str = GEMINI_MODEL) -> Optional[str]:
    """Envia um prompt para o Gemini pedindo resposta em JSON. None se falhar ou vier bloqueada."""
    try:
        model_instance = genai.GenerativeModel(
            model_name=model,
            safety_settings=safety_settings,
            generation_config={"response_mime_type": "application/json"},
        )
        response = model_instance.generate_content(prompt)
        if not response.parts:
            logger.warning("Gemini retornou resposta vazia ou bloqueada.")
            return None
        return response.text.strip()
    except Exception as e:
        # O SDK não tem uma exceção base única; qualquer falha vira "sem resposta"
        logger.error("Erro ao conectar com Gemini: %s", e)
        return None


def _extract_json(response_text: Optional[str], opener: str = "{", closer: str = "}") -> Union[Any, None]:
    if not response_text:
        return None
    start = response_text.find(opener)
    end = response_text.rfind(closer)
    if start == -1 or end == -1:
        return None
    try:
        return json.loads(response_text[start: end + 1])
    except json.JSONDecodeError as e:
        logger.error("Erro ao decodificar JSON do Gemini: %s. Resposta bruta: %s", e, response_text)
        return None


def get_smart_suggestions(establishment_name: str, tx_type: TransactionType, current_input: str = "") -> List[str]:
    """Sugere até 5 descrições curtas para o lançamento."""
    typed = f'O usuário começou a digitar: "{current_input}".' if current_input else ""
    prompt = f"""
    Você é um assistente financeiro para redes de restaurantes e hotéis.
    Estou registrando uma transação de {TransactionType.parse(tx_type).value} para o estabelecimento "{establishment_name}".
    {typed}

    Sugira 5 descrições curtas e comuns para este tipo de transação em um restaurante ou hotel.
    Retorne APENAS um array JSON de strings.
    """
    data = _extract_json(ask_gemini(prompt), "[", "]")
    if not isinstance(data, list):
        return []
    return [str(item) for item in data if str(item).strip()][:5]


def check_anomaly(establishment_name: str, tx_type: TransactionType, amount: float,
                  description: str) -> AnomalyCheckResult:
    """Pergunta ao Gemini se o lançamento parece fora do padrão. Em caso de erro, não bloqueia."""
    prompt = f"""
    Analise a seguinte transação financeira de um restaurante/hotel para detectar anomalias.
    Estabelecimento: {establishment_name}
    Tipo: {TransactionType.parse(tx_type).value}
    Descrição: {description}
    Valor: R$ {amount:.2f}

    Retorne APENAS um objeto JSON: {{"isAnomalous": boolean, "reason": "..."}}
    """
    data = _extract_json(ask_gemini(prompt, model=GEMINI_PRO_MODEL))
    if not isinstance(data, dict):
        return AnomalyCheckResult()
    return AnomalyCheckResult(
        is_anomalous=data.get("isAnomalous") is True,
        reason=str(data.get("reason") or ""),
    )


def build_context(transactions: Iterable[Transaction], establishments: Iterable[Establishment],
                  limit: int = AI_CONTEXT_LIMIT) -> Dict[str, Any]:
    """Contexto enviado ao assistente: só as `limit` transações mais recentes."""
    recent = list(transactions)[:limit]
    return {
        "establishments": [{"id": e.id, "name": e.name} for e in establishments],
        "transactions": [
            {
                "date": t.date,
                "type": t.type.value,
                "val": t.amount,
                "desc": t.description,
                "estId": t.establishment_id,
            }
            for t in recent
        ],
    }


def _parse_suggestion(data: Any) -> Optional[SuggestedTransaction]:
    if not isinstance(data, dict) or not data.get("description"):
        return None
    establishment_id = data.get("establishmentId")
    return SuggestedTransaction(
        type=TransactionType.parse(data.get("type")),
        amount=coerce_amount(data.get("amount")),
        description=str(data["description"]),
        establishment_id=str(establishment_id) if establishment_id else None,
    )


def ask_financial_assistant(scope_label: str, transactions: Iterable[Transaction],
                            establishments: Iterable[Establishment], question: str) -> AssistantResponse:
    """Responde perguntas sobre o caixa e, se o usuário quiser registrar algo, sugere o lançamento."""
    context_data = build_context(transactions, establishments)
    scope = "Toda a rede" if scope_label == NETWORK_SCOPE else f"Estabelecimento {scope_label}"
    prompt = f"""
    Você é um analista financeiro inteligente para uma rede de restaurantes e hotéis.
    Contexto: {scope}.

    Dados: {json.dumps(context_data, ensure_ascii=False)}
    USUÁRIO DISSE: "{question}"

    TAREFAS:
    1. Responda à pergunta do usuário de forma útil e direta.
    2. Se o usuário quiser REGISTRAR algo, extraia os dados.

    Retorne APENAS um objeto JSON:
    {{"answer": "...", "suggestedTransaction": {{"type": "Entrada" ou "Saída", "amount": number, "description": "...", "establishmentId": "..."}} ou null}}
    """
    data = _extract_json(ask_gemini(prompt, model=GEMINI_PRO_MODEL))
    if not isinstance(data, dict) or not data.get("answer"):
        return AssistantResponse(answer=ASSISTANT_ERROR)
    return AssistantResponse(
        answer=str(data["answer"]),
        suggested_transaction=_parse_suggestion(data.get("suggestedTransaction")),
    )
