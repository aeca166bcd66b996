"""
Pick the receipt total and its currency out of OCR text.

Every line is scanned for numbers, optionally with a currency symbol or
code right before or after them. Lines are scored with fixed keyword
lists:

    base                      +1
    positive keyword (total)  +3
    recognized currency       +2
    "subtotal"                -1
    "unit" / "qty"            -1

Lines with a negative keyword (tax, tip, change, ...) are skipped. The
best candidate is the highest score, then the larger amount, then the
earliest one. If no line yields anything, a fallback pass takes the
largest number anywhere in the text, negative keywords included.
"""
import logging
import re
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from config import (
    CURRENCY_MAP,
    LINE_ITEM_KEYWORDS,
    NEGATIVE_KEYWORDS,
    POSITIVE_KEYWORDS,
    SCORE_WEIGHTS,
    SUBTOTAL_KEYWORDS,
)
from extractor.models import Candidate, CurrencyToken, NumberToken
from normalizer.amount_parser import NUMBER_PATTERN, normalize_number

logger = logging.getLogger(__name__)

ScannedToken = Tuple[NumberToken, Optional[CurrencyToken]]

_LETTER = r'[^\W\d_]'
_GAP = r'[ \t\u00a0\u202f\u2009]?'


def _build_currency_pattern() -> str:
    """
    Alternation of every known currency token (longest first) plus any
    upper-case three-letter code, which may or may not be a known one.
    """
    known = sorted(CURRENCY_MAP, key=len, reverse=True)
    alternation = '|'.join(re.escape(token) for token in known)
    return rf'(?<!{_LETTER})(?:{alternation}|(?-i:[A-Z]{{3}}))(?!{_LETTER})'


CURRENCY_PATTERN = _build_currency_pattern()

TOKEN_RE: re.Pattern = re.compile(
    rf'(?:(?P<pre>{CURRENCY_PATTERN}){_GAP})?'
    rf'(?<!\d)(?P<number>{NUMBER_PATTERN})(?!\d)'
    rf'(?:{_GAP}(?P<post>{CURRENCY_PATTERN}))?',
    re.IGNORECASE,
)


def normalize_currency(token: Optional[str]) -> Optional[str]:
    """
    Map a raw currency token ("Kč", "eur", "US$") to its ISO code.

    Returns:
        The ISO code, or None for unknown tokens
    """
    if not token:
        return None
    key = re.sub(r'\s+', '', token).lower()
    return CURRENCY_MAP.get(key)


def contains_keyword(line: str, keywords: Sequence[str]) -> bool:
    """Case-insensitive substring test against a keyword list."""
    lowered = line.lower()
    return any(keyword in lowered for keyword in keywords)


def scan_line(line: str, line_index: int = 0) -> List[ScannedToken]:
    """
    Find every number on a line together with its adjacent currency token.

    A currency before the number is preferred over one after it when both
    are present and recognized.

    Args:
        line: A single line of receipt text
        line_index: Position of the line in the receipt

    Returns:
        List of (NumberToken, CurrencyToken or None), in line order
    """
    tokens: List[ScannedToken] = []

    for match in TOKEN_RE.finditer(line):
        number = NumberToken(
            text=match.group('number'),
            line_index=line_index,
            start=match.start('number'),
            end=match.end('number'),
        )

        currency = None
        for group in ('pre', 'post'):
            raw = match.group(group)
            if raw is None:
                continue
            token = CurrencyToken(
                text=raw,
                code=normalize_currency(raw),
                start=match.start(group),
                end=match.end(group),
            )
            if currency is None or (currency.code is None and token.code is not None):
                currency = token

        tokens.append((number, currency))

    return tokens


def score_line(line: str, has_currency: bool) -> int:
    """
    Score a candidate by the keywords on its line and its currency.

    Args:
        line: The line the candidate was found on
        has_currency: Whether the candidate's currency was recognized

    Returns:
        Integer relevance score
    """
    score = SCORE_WEIGHTS["base"]
    if contains_keyword(line, POSITIVE_KEYWORDS):
        score += SCORE_WEIGHTS["positive_keyword"]
    if has_currency:
        score += SCORE_WEIGHTS["currency"]
    if contains_keyword(line, SUBTOTAL_KEYWORDS):
        score += SCORE_WEIGHTS["subtotal"]
    if contains_keyword(line, LINE_ITEM_KEYWORDS):
        score += SCORE_WEIGHTS["line_item"]
    return score


def _to_candidates(line: str, line_index: int, scored: bool) -> List[Candidate]:
    candidates = []
    for number, currency in scan_line(line, line_index):
        amount = normalize_number(number.text)
        if amount is None:
            logger.debug("Discarding unparseable number %r on line %d", number.text, line_index)
            continue

        code = currency.code if currency else None
        if scored:
            score = score_line(line, code is not None)
        else:
            score = 1 if code is not None else 0

        candidates.append(Candidate(
            amount=amount,
            currency=code,
            score=score,
            line_index=line_index,
        ))
    return candidates


def line_candidates(line: str, line_index: int = 0) -> List[Candidate]:
    """
    Scored candidates for one line, or an empty list if the line holds a
    negative keyword.
    """
    if contains_keyword(line, NEGATIVE_KEYWORDS):
        return []
    return _to_candidates(line, line_index, scored=True)


def _rank(candidate: Candidate) -> Tuple[int, Decimal]:
    return candidate.score, candidate.amount


def select_best(candidates: Sequence[Candidate]) -> Optional[Candidate]:
    """
    Highest score wins, then the larger amount. max() keeps the first of
    equal elements, so a full tie goes to the earliest candidate.
    """
    if not candidates:
        return None
    return max(candidates, key=_rank)


def select_largest(candidates: Sequence[Candidate]) -> Optional[Candidate]:
    """Largest amount wins; the earliest one on ties."""
    if not candidates:
        return None
    return max(candidates, key=lambda candidate: candidate.amount)


def primary_pass(lines: Sequence[str]) -> Optional[Candidate]:
    """Keyword-scored selection over lines without negative keywords."""
    candidates: List[Candidate] = []
    for line_index, line in enumerate(lines):
        candidates.extend(line_candidates(line, line_index))
    return select_best(candidates)


def fallback_pass(lines: Sequence[str]) -> Optional[Candidate]:
    """
    Largest number anywhere in the text, ignoring every keyword.

    Tax or tip lines can win here when nothing else holds a number.
    """
    candidates: List[Candidate] = []
    for line_index, line in enumerate(lines):
        candidates.extend(_to_candidates(line, line_index, scored=False))
    return select_largest(candidates)


def find_total(text: Optional[str]) -> Optional[Candidate]:
    """
    Run the primary pass and, if it finds nothing, the fallback pass.

    Args:
        text: Receipt text; lines are separated by newlines

    Returns:
        The winning Candidate, or None if the text holds no number at all
    """
    if not text:
        return None

    lines = [line.rstrip("\r") for line in text.split("\n")]

    best = primary_pass(lines)
    if best is not None:
        logger.debug(
            "Total %s %s from line %d (score %d)",
            best.amount, best.currency, best.line_index, best.score,
        )
        return best

    best = fallback_pass(lines)
    if best is not None:
        logger.debug(
            "No scored line; falling back to largest number %s %s on line %d",
            best.amount, best.currency, best.line_index,
        )
    return best


def extract_amount(text: Optional[str]) -> Tuple[Optional[Decimal], Optional[str]]:
    """
    Extract the receipt total and its currency.

    Returns:
        Tuple of (amount, currency code); either may be None
    """
    best = find_total(text)
    if best is None:
        return None, None
    return best.amount, best.currency
