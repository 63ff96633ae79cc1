"""
Transaction categorization.

Suggestions are tried in order and the first confident one wins:

1. Feedback patterns learned from corrections (confidence > 0.5)
2. Validated transactions with a similar description (confidence > 0.6)
3. The keyword rule table
4. Gemini, when GEMINI_API_KEY is set
5. The flow's Desconhecido category (confidence 0.1)
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from apps.ledger.models import Category, Transaction, TransactionFlow

from .. import gemini
from ..exceptions import AssistantServiceError
from ..models import FeedbackPattern
from ..text import extract_keywords, keyword_match_score, normalize, text_similarity

logger = logging.getLogger(__name__)

FEEDBACK_THRESHOLD = 0.5
HISTORY_THRESHOLD = 0.6
HISTORY_MIN_SIMILARITY = 0.3
HISTORY_SAMPLE = 10
UNKNOWN_CONFIDENCE = 0.1
MAX_ALTERNATIVES = 3


class Source:
    FEEDBACK = 'feedback'
    HISTORY = 'history'
    RULES = 'rules'
    AI = 'ai'
    FALLBACK = 'fallback'


_IN = TransactionFlow.INCOME
_OUT = TransactionFlow.EXPENSE

# (flow, category, sub category, keywords, priority)
CATEGORY_RULES = [
    # Income
    (_IN, 'Salario', 'Salario Liq.', ['salario', 'ordenado', 'vencimento'], 10),
    (_IN, 'Salario', 'Subs.Férias', ['subsidio', 'ferias'], 9),
    (_IN, 'Salario', 'Subs.Alimentação', ['alimentacao'], 9),
    (_IN, 'Vendas Usados', 'Olx', ['olx', 'venda'], 8),
    (_IN, 'Vendas Usados', 'Vinted', ['vinted'], 8),

    # Food
    (_OUT, 'Alimentação', 'Supermercado', ['continente', 'pingo doce', 'lidl', 'auchan', 'supermercado'], 10),
    (_OUT, 'Alimentação', 'Take Away', ['mcdonalds', 'burger king', 'kfc', 'pizza', 'take away', 'uber eats', 'glovo'], 9),
    (_OUT, 'Alimentação', 'Padaria / Pastelaria', ['padaria', 'pastelaria', 'cafe'], 8),
    (_OUT, 'Alimentação', 'Refeições fora de casa', ['restaurante', 'refeicao', 'jantar'], 7),

    # Transport
    (_OUT, 'Transportes', 'Carro Combustivel', ['galp', 'bp', 'repsol', 'combustivel', 'gasolina', 'gasoleo'], 10),
    (_OUT, 'Transportes', 'Carro Via Verde', ['via verde', 'portagem'], 10),
    (_OUT, 'Transportes', 'Estacionamento', ['estacionamento', 'parquimetro'], 9),
    (_OUT, 'Transportes', 'Transporte Público', ['metro', 'autocarro', 'comboio', 'cp'], 8),

    # Home
    (_OUT, 'Casa', 'Electricidade', ['edp', 'electricidade'], 10),
    (_OUT, 'Casa', 'Água', ['agua', 'aguas'], 10),
    (_OUT, 'Casa', 'Gás', ['gas'], 10),
    (_OUT, 'Casa', 'Internet', ['meo', 'nos', 'vodafone', 'internet'], 9),

    # Subscriptions
    (_OUT, 'Subscrições', 'Spotify', ['spotify'], 10),
    (_OUT, 'Subscrições', 'Amazon', ['amazon'], 10),
    (_OUT, 'Subscrições', 'Google One', ['google'], 9),
    (_OUT, 'Subscrições', 'Telemóvel', ['telemovel'], 9),

    # Health
    (_OUT, 'Saúde', 'Medicamentos Adulto', ['farmacia', 'medicamento'], 10),
    (_OUT, 'Saúde', 'Dentista Adulto', ['dentista'], 10),
    (_OUT, 'Saúde', 'Consultas Adulto', ['consulta', 'medico'], 9),
    (_OUT, 'Desporto', 'Ginásio', ['ginasio', 'fitness'], 9),

    # Shopping
    (_OUT, 'Compras Gerais', 'Vestuário', ['zara', 'mango', 'roupa', 'vestuario'], 8),
    (_OUT, 'Compras Gerais', 'Coisas para casa', ['ikea', 'conforama', 'decoracao'], 8),

    # Banking
    (_OUT, 'Levantamento', 'Levantamento', ['multibanco', 'levantamento'], 10),
    (_OUT, 'Comissões', 'Millenium', ['comissao', 'taxa'], 9),
    (_OUT, 'Comissões', 'MbWay', ['mbway', 'mb way'], 9),
]


@dataclass
class Rule:
    category: Category
    keywords: list
    priority: int


@dataclass
class Suggestion:
    category: Optional[Category]
    confidence: float
    reasoning: str
    source: str


def _rule_confidence(score: int, priority: int) -> float:
    return min(score * priority / 100, 0.95)


class TransactionCategorizer:
    """
    Suggests a category for a transaction description.

    Example:
        categorizer = TransactionCategorizer()
        result = categorizer.categorize(
            description='COMPRA CONTINENTE MATOSINHOS',
            amount=Decimal('54.20'),
            flow=TransactionFlow.EXPENSE,
        )
        result['category'], result['confidence']
    """

    def __init__(self, *, client: Optional[gemini.GeminiClient] = None, use_ai: bool = True):
        self.client = client
        self.use_ai = use_ai
        self._rules = None

    # -------------------------------------------------------------------------
    # Sources
    # -------------------------------------------------------------------------

    @property
    def rules(self) -> list:
        """Rule table resolved against the existing categories."""
        if self._rules is None:
            categories = {
                (c.flow, c.category, c.sub_category): c
                for c in Category.objects.all()
            }
            self._rules = [
                Rule(category=categories[(flow, category, sub_category)], keywords=keywords, priority=priority)
                for flow, category, sub_category, keywords, priority in CATEGORY_RULES
                if (flow, category, sub_category) in categories
            ]
        return self._rules

    def match_feedback(self, search_text: str, flow: str) -> Optional[Suggestion]:
        keywords = extract_keywords(search_text)
        if not keywords:
            return None

        best, best_rank = None, 0.0
        patterns = FeedbackPattern.objects.trusted().filter(
            corrected_category__flow=flow
        ).select_related('corrected_category')

        for pattern in patterns:
            overlaps = any(
                known in word or word in known
                for known in pattern.keywords
                for word in keywords
            )
            if not overlaps:
                continue
            score = keyword_match_score(search_text, pattern.keywords)
            if score and score * pattern.confidence > best_rank:
                best, best_rank = pattern, score * pattern.confidence

        if best is None:
            return None

        return Suggestion(
            category=best.corrected_category,
            confidence=min(best.confidence * 0.9, 0.85),
            reasoning=f"Based on user feedback pattern ({best.occurrences} corrections)",
            source=Source.FEEDBACK,
        )

    def match_history(self, description: str, flow: str) -> Optional[Suggestion]:
        normalized = normalize(description)
        if not normalized:
            return None

        similar = (
            Transaction.objects
            .filter(is_validated=True, flow=flow, description__icontains=normalized.split(' ')[0])
            .select_related('category')
            .order_by('-date')[:HISTORY_SAMPLE]
        )

        scores = {}
        for txn in similar:
            total, count, category = scores.get(txn.category_id, (0.0, 0, txn.category))
            scores[txn.category_id] = (total + text_similarity(normalized, txn.description), count + 1, category)

        best, best_average = None, 0.0
        for total, count, category in scores.values():
            average = total / count
            if average > best_average and average > HISTORY_MIN_SIMILARITY:
                best, best_average = category, average

        if best is None:
            return None

        return Suggestion(
            category=best,
            confidence=min(best_average * 0.8, 0.9),
            reasoning='Based on similar historical transactions',
            source=Source.HISTORY,
        )

    def match_rules(self, search_text: str, flow: str) -> list:
        """Matching rules for the flow as (rule, score), strongest first."""
        matches = []
        for rule in self.rules:
            if rule.category.flow != flow:
                continue
            score = keyword_match_score(search_text, rule.keywords)
            if score > 0:
                matches.append((rule, score))

        matches.sort(key=lambda match: match[1] * match[0].priority, reverse=True)
        return matches

    def ask_gemini(self, description: str, amount, flow: str, merchant_name: Optional[str]) -> Optional[Suggestion]:
        if not self.use_ai:
            return None
        client = self.client or gemini.get_client()
        if not client.is_configured:
            return None

        categories = list(Category.objects.filter(flow=flow).order_by('category', 'sub_category'))
        options = '\n'.join(f"- {c.category} > {c.sub_category}" for c in categories)
        prompt = (
            "You categorize bank transactions for a Portuguese family budget.\n\n"
            f"Description: {description}\n"
            f"Merchant: {merchant_name or 'unknown'}\n"
            f"Amount: €{amount}\n"
            f"Flow: {'income' if flow == TransactionFlow.INCOME else 'expense'}\n\n"
            f"Available categories (category > sub category):\n{options}\n\n"
            "Respond with ONLY a JSON object in this exact format:\n"
            '{"category": "...", "sub_category": "...", "confidence": 0.8, "reasoning": "brief explanation"}'
        )

        try:
            data = client.generate_json(prompt)
        except AssistantServiceError as e:
            logger.warning("Gemini categorization unavailable: %s", e)
            return None

        if not isinstance(data, dict):
            return None

        wanted = (normalize(str(data.get('category', ''))), normalize(str(data.get('sub_category', ''))))
        for category in categories:
            if (normalize(category.category), normalize(category.sub_category)) == wanted:
                try:
                    confidence = float(data.get('confidence', 0.5))
                except (TypeError, ValueError):
                    confidence = 0.5
                return Suggestion(
                    category=category,
                    confidence=max(0.0, min(confidence, 0.9)),
                    reasoning=str(data.get('reasoning') or 'Suggested by Gemini'),
                    source=Source.AI,
                )

        logger.info("Gemini suggested an unknown category: %s", data)
        return None

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def categorize(
        self,
        *,
        description: str,
        amount: Decimal,
        flow: str,
        merchant_name: Optional[str] = None,
    ) -> dict:
        """
        Suggest a category.

        Returns:
            Dict with category (Category), confidence, reasoning,
            alternatives (up to three other rule matches) and source
        """
        search_text = f"{description} {merchant_name or ''}"
        rule_matches = self.match_rules(search_text, flow)

        suggestion = self.match_feedback(search_text, flow)
        if suggestion is None or suggestion.confidence <= FEEDBACK_THRESHOLD:
            history = self.match_history(description, flow)
            suggestion = history if history and history.confidence > HISTORY_THRESHOLD else None

        if suggestion is None and rule_matches:
            rule, score = rule_matches[0]
            suggestion = Suggestion(
                category=rule.category,
                confidence=_rule_confidence(score, rule.priority),
                reasoning=f"Matched keywords: {', '.join(rule.keywords)}",
                source=Source.RULES,
            )

        if suggestion is None:
            suggestion = self.ask_gemini(description, amount, flow, merchant_name)

        if suggestion is None:
            suggestion = Suggestion(
                category=Category.objects.unknown(flow),
                confidence=UNKNOWN_CONFIDENCE,
                reasoning='No matching patterns found, assigned to unknown category',
                source=Source.FALLBACK,
            )

        alternatives = [
            {
                'category_id': str(rule.category.id),
                'category': rule.category.category,
                'sub_category': rule.category.sub_category,
                'confidence': round(min(_rule_confidence(score, rule.priority) * 0.8, 0.8), 2),
            }
            for rule, score in rule_matches
            if rule.category.id != suggestion.category.id
        ][:MAX_ALTERNATIVES]

        return {
            'category': suggestion.category,
            'confidence': round(suggestion.confidence, 2),
            'reasoning': suggestion.reasoning,
            'alternatives': alternatives,
            'source': suggestion.source,
        }


def categorize_transaction(
    *,
    description: str,
    amount: Decimal,
    flow: str,
    merchant_name: Optional[str] = None,
) -> dict:
    return TransactionCategorizer().categorize(
        description=description,
        amount=amount,
        flow=flow,
        merchant_name=merchant_name,
    )


def categorize_many(items: list) -> list:
    """Categorize several transactions, sharing one rule table."""
    categorizer = TransactionCategorizer()
    return [categorizer.categorize(**item) for item in items]
