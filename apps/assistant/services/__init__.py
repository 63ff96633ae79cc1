"""
Assistant app services layer.

Categorization with correction feedback, and the Gemini financial chat.
"""

from .categorization import (
    CATEGORY_RULES,
    Source,
    TransactionCategorizer,
    categorize_transaction,
    categorize_many,
)

from .feedback import (
    learn_from_correction,
    categorization_stats,
    most_corrected_categories,
    feedback_insights,
    reset_learning,
)

from .financial_advisor import (
    ResponseType,
    category_benchmark,
    build_financial_context,
    build_financial_prompt,
    parse_reply,
    parse_insights_text,
    process_financial_query,
    generate_insights,
)


__all__ = [
    # Categorization
    'CATEGORY_RULES',
    'Source',
    'TransactionCategorizer',
    'categorize_transaction',
    'categorize_many',

    # Feedback
    'learn_from_correction',
    'categorization_stats',
    'most_corrected_categories',
    'feedback_insights',
    'reset_learning',

    # Financial chat
    'ResponseType',
    'category_benchmark',
    'build_financial_context',
    'build_financial_prompt',
    'parse_reply',
    'parse_insights_text',
    'process_financial_query',
    'generate_insights',
]
