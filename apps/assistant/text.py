"""Text helpers shared by the categorizer and the feedback learner."""

import re
import unicodedata

STOP_WORDS = frozenset({
    'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'de', 'da', 'do', 'em', 'com', 'para', 'por',
})

MAX_KEYWORDS = 5

# Keywords this short only match whole words ("bp", "mb", "nos")
SHORT_KEYWORD = 3


def normalize(text: str) -> str:
    """Lowercase, strip accents, turn punctuation into spaces and collapse whitespace."""
    decomposed = unicodedata.normalize('NFD', (text or '').lower())
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    cleaned = re.sub(r'[^\w\s]', ' ', stripped)
    return re.sub(r'\s+', ' ', cleaned).strip()


def extract_keywords(text: str) -> list:
    """First five words longer than two characters that are not stop words."""
    words = normalize(text).split(' ')
    return [word for word in words if len(word) > 2 and word not in STOP_WORDS][:MAX_KEYWORDS]


def keyword_match_score(text: str, keywords) -> int:
    """
    Score how well keywords match a text.

    Per matching keyword: 10 when it is the whole text, 7 when the text
    starts or ends with it, 5 when it appears anywhere else.
    """
    normalized = normalize(text)
    padded = f" {normalized} "
    score = 0

    for keyword in keywords:
        needle = normalize(keyword)
        if not needle:
            continue
        if len(needle) <= SHORT_KEYWORD and f" {needle} " not in padded:
            continue
        if needle not in normalized:
            continue

        if normalized == needle:
            score += 10
        elif normalized.startswith(needle) or normalized.endswith(needle):
            score += 7
        else:
            score += 5

    return score


def text_similarity(first: str, second: str) -> float:
    """Shared words (longer than two characters) over the longer text's word count."""
    words_first = normalize(first).split(' ')
    words_second = normalize(second).split(' ')

    common = [word for word in words_first if len(word) > 2 and word in words_second]
    return len(common) / max(len(words_first), len(words_second))
