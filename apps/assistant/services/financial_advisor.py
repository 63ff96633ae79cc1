"""
Gemini financial chat and insights.

The prompt is built from the family's own numbers (income, expenses,
spending per origin, top categories against benchmarks, active goals) so
answers are grounded in the ledger rather than in hypotheticals.
"""

import logging
import re
from datetime import date
from decimal import Decimal
from typing import Optional

from django.utils import timezone

from apps.accounts.models import User
from apps.analytics.analytics import AnalyticsQueries
from apps.budgeting.models import Goal, GoalStatus

from .. import gemini
from ..text import normalize

logger = logging.getLogger(__name__)

CHAT_CONFIDENCE = 0.9
INSIGHT_CONFIDENCE = 0.85
MAX_FOLLOW_UPS = 3
MAX_INSIGHTS = 5
TOP_CATEGORIES = 10

SOURCES = ['AI Analysis based on your financial data']

DEFAULT_FOLLOW_UPS = [
    'How can I improve my financial situation?',
    'What should I focus on next?',
    'Can you analyze my spending patterns?',
    'Help me set realistic financial goals',
]

FOLLOW_UP_PATTERN = re.compile(
    r'(?:Would you like|Do you want|Should I|Can I help|What about|How about|Consider).{10,100}?\?'
)
CHART_LINE_PATTERN = re.compile(
    r'(\w[^:\n]*?):\s*€?\s*(\d[\d.,]*)\s*€?\s*\((\d+(?:[.,]\d+)?)%\)'
)

CHART_KEYWORDS = ('breakdown', 'comparison', 'trend', 'analysis', 'categories', 'distribution')
RECOMMENDATION_KEYWORDS = ('recommend', 'suggest', 'should', 'consider', 'try', 'advice')
INSIGHT_KEYWORDS = ('notice', 'observe', 'analysis shows', 'data indicates', 'pattern', 'trend')

# Share of expenses each category should stay under (%)
CATEGORY_BENCHMARKS = {
    'casa': 30,
    'transportes': 15,
    'alimentacao': 12,
    'saude': 8,
    'compras gerais': 10,
    'lazer': 8,
    'educacao': 5,
    'subscricoes': 5,
    'prendas': 3,
    'poupanca': 20,
    'investimento': 15,
}
DEFAULT_BENCHMARK = 10


class ResponseType:
    TEXT = 'text'
    CHART = 'chart'
    RECOMMENDATION = 'recommendation'
    INSIGHT = 'insight'


def _eur(value) -> str:
    """1234.5 -> '1.234,50' (pt-PT)."""
    formatted = f"{Decimal(value):,.2f}"
    return formatted.replace(',', ' ').replace('.', ',').replace(' ', '.')


def _parse_amount(text: str) -> float:
    """Read '1,234.56', '1.234,56', '1.500' or '567' as a number."""
    if ',' in text and '.' in text:
        decimal_mark = ',' if text.rfind(',') > text.rfind('.') else '.'
    elif ',' in text or '.' in text:
        mark = ',' if ',' in text else '.'
        decimal_mark = mark if len(text) - text.rfind(mark) - 1 != 3 else None
    else:
        decimal_mark = None

    thousands = [mark for mark in (',', '.') if mark != decimal_mark]
    for mark in thousands:
        text = text.replace(mark, '')
    return float(text.replace(',', '.'))


# =============================================================================
# Context
# =============================================================================

def category_benchmark(category: str) -> int:
    name = normalize(category)
    if name in CATEGORY_BENCHMARKS:
        return CATEGORY_BENCHMARKS[name]
    for key, value in CATEGORY_BENCHMARKS.items():
        if key in name or name in key:
            return value
    return DEFAULT_BENCHMARK


def build_financial_context(
    *,
    user: Optional[User] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    today: Optional[date] = None,
) -> dict:
    """
    Snapshot of the family's finances for the prompt.

    Defaults to the current month. Goals are the requesting member's
    active goals.
    """
    today = today or timezone.localdate()
    date_from = date_from or today.replace(day=1)
    date_to = date_to or today

    totals = AnalyticsQueries.summary(date_from=date_from, date_to=date_to, today=today)['summary']
    income = totals['total_income']
    expenses = totals['total_outgoings']
    count = totals['transaction_count']

    breakdown = AnalyticsQueries.category_breakdown(date_from=date_from, date_to=date_to)
    origins = AnalyticsQueries.spending_by_origin(date_from=date_from, date_to=date_to)

    goals = []
    if user is not None:
        goals = [
            {
                'title': goal.title,
                'current': goal.current_amount,
                'target': goal.target_amount,
                'target_date': goal.target_date,
            }
            for goal in Goal.objects.filter(owner=user, status=GoalStatus.ACTIVE).by_priority()
        ]

    return {
        'period': {'from': date_from, 'to': date_to},
        'total_income': income,
        'total_expenses': expenses,
        'net_cash_flow': income - expenses,
        'savings_rate': round(float((income - expenses) / income * 100), 1) if income else 0.0,
        'transaction_count': count,
        'average_transaction': ((income + expenses) / count).quantize(Decimal('0.01')) if count else Decimal('0.00'),
        'spending_by_origin': [
            {'origin': row['origin'], 'amount': row['amount'], 'percentage': row['percentage']}
            for row in origins
        ],
        'category_hierarchy': [
            {
                'major_category': row['major_category'],
                'category': row['category'],
                'sub_category': row['sub_category'],
                'amount': row['amount'],
                'percentage': row['percentage'],
            }
            for row in breakdown['categories'][:TOP_CATEGORIES]
        ],
        'goals': goals,
    }


def _savings_label(rate: float) -> str:
    if rate >= 20:
        return 'EXCELLENT'
    if rate >= 10:
        return 'MODERATE'
    return 'CRITICAL'


def _category_status(percentage: float, benchmark: int) -> str:
    if percentage > benchmark:
        return 'OVER'
    if percentage > benchmark * 0.8:
        return 'HIGH'
    return 'OK'


def build_financial_prompt(context: dict, today: Optional[date] = None) -> str:
    today = today or timezone.localdate()

    origin_lines = []
    for row in context['spending_by_origin']:
        who = 'Joint expenses' if row['origin'] == 'Comum' else f"{row['origin']}'s personal spending"
        origin_lines.append(f"- {row['origin']}: €{_eur(row['amount'])} ({row['percentage']:.1f}%) - {who}")

    category_lines = []
    for row in context['category_hierarchy']:
        status = _category_status(row['percentage'], category_benchmark(row['category']))
        category_lines.append(
            f"- {row['major_category']} > {row['category']} > {row['sub_category']}: "
            f"€{_eur(row['amount'])} ({row['percentage']:.1f}%) {status}"
        )

    goal_lines = []
    for goal in context['goals']:
        progress = goal['current'] / goal['target'] * 100 if goal['target'] else 0
        days_left = (goal['target_date'] - today).days
        monthly = (goal['target'] - goal['current']) / Decimal(days_left / 30) if days_left > 0 else 0
        goal_lines.append(
            f"- {goal['title']}: €{_eur(goal['current'])} / €{_eur(goal['target'])} ({progress:.1f}% complete)\n"
            f"  Timeline: {days_left} days | Required: €{monthly:.0f}/month"
        )

    return f"""You are a senior financial analyst and personal finance advisor for a Portuguese family.

BUSINESS RULES:
1. Categories follow Major Category > Category > Subcategory.
2. Origin "Comum" means joint expenses; any other origin is a family member's personal spending.
3. All amounts are in Euros (€).
4. Base every answer on the data below. Never claim the data is unavailable.

BENCHMARKS:
- Savings rate: target 20%+ (under 10% is critical)
- Expense ratios: housing <30%, transport <15%, food <12%, discretionary <20%
- Emergency fund: 3-6 months of expenses

CLIENT PROFILE ({context['period']['from']} to {context['period']['to']}):
Income: €{_eur(context['total_income'])}
Expenses: €{_eur(context['total_expenses'])}
Net cash flow: €{_eur(context['net_cash_flow'])}
Savings rate: {context['savings_rate']}% {_savings_label(context['savings_rate'])}
Transactions: {context['transaction_count']} (average €{_eur(context['average_transaction'])})

SPENDING BY PERSON:
{chr(10).join(origin_lines) or '- No expenses recorded'}

TOP EXPENSE CATEGORIES:
{chr(10).join(category_lines) or '- No expenses recorded'}

ACTIVE GOALS:
{chr(10).join(goal_lines) or '- No active financial goals set (recommend an emergency fund goal)'}

STYLE:
- Be conversational and concise; match the detail the user asks for.
- Use specific euro amounts and percentages when relevant.
- Offer one or two brief follow-up suggestions."""


# =============================================================================
# Reply parsing
# =============================================================================

def extract_follow_up_questions(reply: str) -> list:
    found = FOLLOW_UP_PATTERN.findall(reply)
    return found[:MAX_FOLLOW_UPS] if found else DEFAULT_FOLLOW_UPS[:MAX_FOLLOW_UPS]


def extract_chart_data(reply: str) -> Optional[dict]:
    """Lines such as 'Alimentação: €567,20 (20.3%)' become chart points."""
    points = [
        {
            'name': name.strip(),
            'amount': _parse_amount(amount),
            'percentage': float(percentage.replace(',', '.')),
        }
        for name, amount, percentage in CHART_LINE_PATTERN.findall(reply)
    ]
    return {'chart_data': points} if points else None


def parse_reply(reply: str, query: str) -> dict:
    lowered = reply.lower()
    parsed = {
        'message': reply,
        'type': ResponseType.TEXT,
        'data': None,
        'follow_up_questions': extract_follow_up_questions(reply),
    }

    mentions_chart = any(k in query.lower() or k in lowered for k in CHART_KEYWORDS)
    if mentions_chart and ('€' in lowered or 'percent' in lowered):
        parsed['type'] = ResponseType.CHART
        parsed['data'] = extract_chart_data(reply)

    if any(k in lowered for k in RECOMMENDATION_KEYWORDS):
        parsed['type'] = ResponseType.RECOMMENDATION

    if any(k in lowered for k in INSIGHT_KEYWORDS):
        parsed['type'] = ResponseType.INSIGHT

    return parsed


def insight_type(text: str) -> str:
    lowered = text.lower()
    if any(k in lowered for k in ('good', 'excellent', 'great')):
        return 'positive'
    if any(k in lowered for k in ('high', 'too much', 'warning')):
        return 'warning'
    if any(k in lowered for k in ('could', 'opportunity', 'consider')):
        return 'opportunity'
    return 'neutral'


def insight_priority(text: str) -> str:
    lowered = text.lower()
    if any(k in lowered for k in ('urgent', 'immediately', 'critical')):
        return 'high'
    if any(k in lowered for k in ('soon', 'important', 'should')):
        return 'medium'
    return 'low'


def parse_insights_text(text: str) -> list:
    """Numbered free text ('1. Title\\nDetails') as insight dicts."""
    sections = re.split(r'(?m)^\s*\d+\.\s+', text)
    if len(sections) > 1:
        sections = sections[1:]

    insights = []
    for section in sections:
        lines = [line.strip() for line in section.splitlines() if line.strip()]
        if not lines:
            continue

        description = ' '.join(lines[1:])
        insights.append({
            'id': f"insight-{len(insights) + 1}",
            'title': re.sub(r'[*#]+', '', lines[0]).strip(),
            'description': description,
            'type': insight_type(description),
            'priority': insight_priority(description),
            'recommendations': [],
            'actionable': 'should' in description.lower() or 'consider' in description.lower(),
            'confidence': INSIGHT_CONFIDENCE,
        })

    return insights[:MAX_INSIGHTS]


def _normalize_insight(index: int, raw: dict) -> dict:
    description = str(raw.get('description', ''))
    recommendations = raw.get('recommendations') or []
    return {
        'id': f"insight-{index}",
        'title': str(raw.get('title', '')).strip(),
        'description': description,
        'type': raw.get('type') or insight_type(description),
        'priority': raw.get('priority') or insight_priority(description),
        'recommendations': [str(item) for item in recommendations] if isinstance(recommendations, list) else [],
        'actionable': bool(recommendations),
        'confidence': INSIGHT_CONFIDENCE,
    }


# =============================================================================
# Entry points
# =============================================================================

def process_financial_query(
    *,
    query: str,
    context: dict,
    client: Optional[gemini.GeminiClient] = None,
) -> dict:
    """
    Answer a natural-language question about the family's finances.

    Raises:
        AssistantNotConfiguredError: No GEMINI_API_KEY
        AssistantProviderError: Gemini failed
    """
    client = client or gemini.get_client()
    prompt = f"{build_financial_prompt(context)}\n\nUser Query: {query}"

    reply = client.generate(prompt)
    parsed = parse_reply(reply, query)

    return {
        **parsed,
        'confidence': CHAT_CONFIDENCE,
        'sources': SOURCES,
        'provider': 'gemini',
        'processed_at': timezone.now(),
    }


def generate_insights(*, context: dict, client: Optional[gemini.GeminiClient] = None) -> list:
    """
    Three to five actionable insights from Gemini.

    A JSON array reply is used as is; otherwise the numbered text is parsed.
    """
    client = client or gemini.get_client()
    prompt = f"""{build_financial_prompt(context)}

Analyze this family's financial data and provide 3-5 specific, actionable insights.
Format your response as a JSON array of objects with: title, description,
type (positive/warning/opportunity), priority (high/medium/low) and
recommendations (array of strings)."""

    reply = client.generate(prompt)
    data = gemini.extract_json(reply)

    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        return [_normalize_insight(i, item) for i, item in enumerate(data[:MAX_INSIGHTS], start=1)]

    logger.info("Gemini insights were not JSON, parsing text")
    return parse_insights_text(reply)
