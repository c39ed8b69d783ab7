"""
scoring/normalizer.py

Locale-tolerant parsing of scraped metric strings.
"""

import math
import re

# Substituted for unparsable or zero CTR/CPA values so the score never divides by zero.
EPSILON = 0.01

_NUMBER_TOKEN = re.compile(r"[-+]?\d[\d.,]*(?:[eE][-+]?\d+)?")
_GROUPING_SPACE = re.compile(r"(?<=\d)[\s\u00a0\u202f'](?=\d{3}(?!\d))")
_EXPONENT = re.compile(r"[eE][-+]?\d+$")

_UNIT_TOKENS = ("POSTS", "POST", "VIDEOS", "VIDEO", "VIEWS", "VIEW", "PLAYS", "PLAY")
_MAGNITUDE_FACTORS = {
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}


class MetricNormalizer:
    """Stateless conversions from display strings to numbers.

    Handles percentages, currency prefixes and suffixes, both decimal
    separator conventions and K/M/B magnitude suffixes.
    """

    def normalize(self, raw: object, fallback: float = 0.0) -> float:
        """Parse a metric string, substituting ``fallback`` for failures.

        A parsed value of exactly zero is treated as a failure too, which
        keeps denominator-role fields away from zero when callers pass
        ``EPSILON`` as the fallback.

        Args:
            raw: Display value such as ``"2%"``, ``"$1.50"`` or ``"1.234,5"``.
            fallback: Returned when nothing numeric can be parsed or the
                result is zero.

        Returns:
            A finite float.
        """
        value = self.parse(raw)
        if value is None or value == 0.0:
            return fallback
        return value

    def parse(self, raw: object) -> float | None:
        """Parse the first numeric token in ``raw``; None when there is none."""
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, (int, float)):
            value = float(raw)
            return value if math.isfinite(value) else None

        text = str(raw).strip().replace("\u2212", "-")
        text = _GROUPING_SPACE.sub("", text)
        match = _NUMBER_TOKEN.search(text)
        if match is None:
            return None

        token = match.group(0)
        exponent_match = _EXPONENT.search(token)
        exponent = exponent_match.group(0) if exponent_match else ""
        mantissa = token[: len(token) - len(exponent)]
        try:
            value = float(self._resolve_separators(mantissa) + exponent)
        except ValueError:
            return None
        return value if math.isfinite(value) else None

    def parse_magnitude(self, text: object) -> int:
        """Parse counts such as ``"12.3K"``, ``"1M Posts"`` or ``"500"``.

        Whitespace is removed and the text uppercased, a trailing unit word
        is stripped, then a K/M/B suffix multiplies the number. Anything
        unparsable yields 0.
        """
        if text is None:
            return 0
        compact = re.sub(r"\s+", "", str(text)).upper()
        for unit in _UNIT_TOKENS:
            if compact.endswith(unit):
                compact = compact[: -len(unit)]
                break
        if not compact:
            return 0

        factor = _MAGNITUDE_FACTORS.get(compact[-1])
        if factor is not None:
            try:
                return int(round(float(compact[:-1].replace(",", ".")) * factor))
            except ValueError:
                return 0

        digits = re.match(r"[-+]?\d[\d,]*", compact)
        if digits is None:
            return 0
        return int(digits.group(0).replace(",", ""))

    @staticmethod
    def _resolve_separators(mantissa: str) -> str:
        digits = mantissa.rstrip(".,")
        has_comma = "," in digits
        has_dot = "." in digits
        if has_comma and has_dot:
            # Whichever separator comes last marks the decimals.
            if digits.rfind(",") > digits.rfind("."):
                return digits.replace(".", "").replace(",", ".")
            return digits.replace(",", "")
        if has_comma:
            if digits.count(",") > 1:
                return digits.replace(",", "")
            return digits.replace(",", ".")
        if digits.count(".") > 1:
            return digits.replace(".", "")
        return digits
