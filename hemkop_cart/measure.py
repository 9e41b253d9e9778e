from __future__ import annotations

import re
from decimal import Decimal

# "kilogram", "kilos", "grams" and the Swedish "gr" are accepted; the unit
# must still end the word, so "3 gurkor" is not a weight.
_WEIGHT_RE = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*(kilo(?:gram)?s?|kg|gr(?:am)?s?|g)\b",
    re.IGNORECASE,
)


def _factor(unit: str) -> Decimal:
    return Decimal(1000) if unit.lower().startswith("k") else Decimal(1)


def parse_weight(text: str | None) -> float | None:
    """Return the first weight stated in *text*, in grams.

    "2.5 kg bananer" -> 2500.0, "ca 170g" -> 170.0, "en burk" -> None.
    A comma decimal separator ("1,5 kg") is accepted as well.
    """
    if not text:
        return None
    m = _WEIGHT_RE.search(text)
    if not m:
        return None
    # Decimal keeps "4.03 kg" equal to "4030g" instead of 4030.0000000000005.
    val = Decimal(m.group(1).replace(",", "."))
    return float(val * _factor(m.group(2)))


def format_grams(grams: float) -> str:
    if grams >= 1000:
        return f"{grams / 1000:.2f}kg"
    return f"{grams:g}g"
