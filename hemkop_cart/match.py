from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .llm import LlmError, TextGenerator
from .measure import parse_weight
from .models import CandidateProduct, SelectionDecision, SelectionMethod

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Not available"

SELECT_PROMPT = """Shopping list item: {requirement}

Available products:
{listing}

Which product number is the best match for the shopping list item?
Reason about the products in this order of priority:
1. Product type: is it actually the product the shopping list asks for?
2. Unit price: prefer the lowest comparison price (jmf-pris).
3. Weight/volume: pick the size closest to, but not less than, what is needed.
4. Quality requirements mentioned in the shopping list item.
5. Any other factors.

Explain your reasoning briefly. Then write your final choice as the LAST line,
containing ONLY the product number, for example:
2"""


def candidate_weight(c: CandidateProduct) -> float:
    return parse_weight(c.display_volume) or 0.0


def select_by_weight(
    candidates: Sequence[CandidateProduct],
    required_grams: float,
) -> tuple[int, float]:
    """Pick the lightest candidate that still meets *required_grams*.

    When none does, the heaviest candidate is the best available. Ties go to
    the earliest candidate. Returns (index, weight in grams).
    """
    weights = [candidate_weight(c) for c in candidates]

    best: int | None = None
    for i, w in enumerate(weights):
        if w >= required_grams and (best is None or w < weights[best]):
            best = i
    if best is not None:
        return best, weights[best]

    best = 0
    for i, w in enumerate(weights):
        if w > weights[best]:
            best = i
    return best, weights[best]


def build_product_listing(candidates: Sequence[CandidateProduct]) -> str:
    lines = []
    for i, c in enumerate(candidates, 1):
        lines.append(
            f"{i}. {c.title}"
            f" - Price: {c.price or NOT_AVAILABLE}"
            f" - Compare Price: {c.compare_price or NOT_AVAILABLE}"
            f" - Volume/Weight: {c.display_volume or NOT_AVAILABLE}"
        )
    return "\n".join(lines)


def build_selection_prompt(candidates: Sequence[CandidateProduct], requirement: str) -> str:
    return SELECT_PROMPT.format(requirement=requirement, listing=build_product_listing(candidates))


# ---------------------------------------------------------------------------
# Reply parsing
#
# Each strategy maps (reply text, candidate count) to a zero-based index that
# is guaranteed to be in range, or None. They are tried in order.
# ---------------------------------------------------------------------------

# Digit runs are capped so int() never sees a pathological token.
_NUMBER_LINE_RE = re.compile(r"(\d{1,9})(?:\.(\d{1,9}))?")
_FINAL_CHOICE_RE = re.compile(
    r"final\s+(?:choice|answer)\s*(?:is)?\s*[:\-]?\s*\**\s*(?:product\s+)?#?(\d{1,9})\b",
    re.IGNORECASE,
)
_PRODUCT_RE = re.compile(r"\bprodu(?:ct|kt)\s*(?:number\s*|nr\.?\s*)?#?(\d{1,9})\b", re.IGNORECASE)
_SINGLE_DIGIT_RE = re.compile(r"[1-9]")
_INTEGER_RE = re.compile(r"\b(\d{1,9})\b")
_RECOMMEND_RE = re.compile(r"recommend(?:ed|s)?\s+(?:product\s+)?#?(\d{1,9})\b", re.IGNORECASE)


def _in_range(number: int, count: int) -> int | None:
    idx = number - 1
    if 0 <= idx < count:
        return idx
    return None


def _last_line(text: str, count: int) -> int | None:
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    if not lines:
        return None
    last = lines[-1].strip("*_`#.:) \t")
    m = _NUMBER_LINE_RE.fullmatch(last)
    if not m:
        return None
    # "3.0" is a number, "3.5" is not a product number.
    if m.group(2) and int(m.group(2)) != 0:
        return None
    return _in_range(int(m.group(1)), count)


def _product_phrase(text: str, count: int) -> int | None:
    finals = _FINAL_CHOICE_RE.findall(text)
    if finals:
        idx = _in_range(int(finals[-1]), count)
        if idx is not None:
            return idx
    m = _PRODUCT_RE.search(text)
    if m:
        return _in_range(int(m.group(1)), count)
    return None


def _single_digit(text: str, count: int) -> int | None:
    stripped = text.strip()
    if _SINGLE_DIGIT_RE.fullmatch(stripped):
        return _in_range(int(stripped), count)
    return None


def _any_integer(text: str, count: int) -> int | None:
    for m in _INTEGER_RE.finditer(text):
        idx = _in_range(int(m.group(1)), count)
        if idx is not None:
            return idx
    return None


@dataclass(frozen=True)
class ChoiceStrategy:
    name: str
    extract: Callable[[str, int], int | None]


# Order matters. A bare one-digit reply is already taken by "last_line", so
# "single_digit" only backs it up and does not fire on its own today.
CHOICE_STRATEGIES: tuple[ChoiceStrategy, ...] = (
    ChoiceStrategy("last_line", _last_line),
    ChoiceStrategy("product_phrase", _product_phrase),
    ChoiceStrategy("single_digit", _single_digit),
    ChoiceStrategy("any_integer", _any_integer),
)


def parse_choice(text: str, count: int) -> tuple[int, str] | None:
    """Find the product the LLM chose in *text*.

    Returns (zero-based index, strategy name), or None when no strategy yields
    an index within ``count`` candidates.
    """
    if not text or count <= 0:
        return None
    for strategy in CHOICE_STRATEGIES:
        idx = strategy.extract(text, count)
        if idx is not None:
            return idx, strategy.name
    return None


def recommended_index(text: str) -> int | None:
    """Zero-based index from a "recommend product K" phrase, if any."""
    m = _RECOMMEND_RE.search(text or "")
    if not m:
        return None
    return int(m.group(1)) - 1


def select_best(
    candidates: Sequence[CandidateProduct],
    requirement: str,
    *,
    llm: TextGenerator,
    temperature: float = 0.1,
) -> SelectionDecision | None:
    if not candidates:
        logger.info("No candidates for %r", requirement)
        return None

    required = parse_weight(requirement)
    if required is not None:
        idx, weight = select_by_weight(candidates, required)
        chosen = candidates[idx]
        if weight >= required:
            logger.info("Weight-based selection: %s (%gg >= %gg)", chosen.title, weight, required)
        else:
            logger.info("No product meets %gg, using largest: %s (%gg)", required, chosen.title, weight)
        return SelectionDecision(chosen=chosen, method=SelectionMethod.DETERMINISTIC_WEIGHT, index=idx)

    prompt = build_selection_prompt(candidates, requirement)
    logger.debug("Selection prompt:\n%s", prompt)
    try:
        reply = llm.generate(prompt, temperature=temperature)
    except LlmError as exc:
        logger.warning("LLM selection failed for %r: %s", requirement, exc)
        reply = ""

    parsed = parse_choice(reply, len(candidates))
    if parsed is not None:
        idx, strategy = parsed
        recommended = recommended_index(reply)
        if recommended is not None and recommended != idx:
            logger.warning(
                "LLM reasoning recommends product %d but chose product %d; keeping %d",
                recommended + 1, idx + 1, idx + 1,
            )
        chosen = candidates[idx]
        logger.info("LLM selected product %d (%s): %s", idx + 1, strategy, chosen.title)
        return SelectionDecision(
            chosen=chosen, method=SelectionMethod.LLM_ARBITRATION, index=idx, strategy=strategy,
        )

    logger.warning("Could not determine product selection from LLM reply, using first product")
    return SelectionDecision(chosen=candidates[0], method=SelectionMethod.FALLBACK_FIRST, index=0)
