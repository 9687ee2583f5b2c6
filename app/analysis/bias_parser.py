"""Bias Response Parser: structured findings from the bias-detection report.

Grammar (applied to normalizer output):

    report   := free-text | { prose } block { block }
    block    := "Type:" type-value  ...up to the next "Type:" marker
    fields   := 'Text:' ... '"' quoted '"'
              | 'Confidence:' ... digits '%'
              | 'Alternative:' rest-of-line

Every "Type:" occurrence yields exactly one finding. Missing or malformed
fields degrade to defaults (confidence 0, empty text, category
"alert-circle" for an empty type) and are recorded as anomalies instead of
aborting the report.
"""

from __future__ import annotations

import logging
import re

from app.analysis.types import (
    CATEGORY_CATALOGUE,
    DEFAULT_SEVERITY_COLOR,
    SEVERITY_COLORS,
    UNRECOGNIZED_CATEGORY,
    BiasCategory,
    BiasFinding,
    BiasReport,
    Severity,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Field patterns
# ---------------------------------------------------------------------------
_TYPE_MARKER = re.compile(r"Type:")
_INLINE_FIELD = re.compile(r"\s(?:Text|Confidence|Alternative):")
_TEXT_QUOTED = re.compile(r'Text:[^"“\n]*["“]([^"”]*)["”]')
_TEXT_BARE = re.compile(r"Text:[ \t]*(.*)")
_CONFIDENCE_PERCENT = re.compile(r"Confidence:[^\n]*?(\d+(?:\.\d+)?)\s*%")
_CONFIDENCE_BARE = re.compile(r"Confidence:[ \t]*(\d+(?:\.\d+)?)")
_CONFIDENCE_LABEL = re.compile(r"Confidence:")
_ALTERNATIVE = re.compile(r"Alternative:[ \t]*(.*)")

# Loose spellings the model uses for the catalogue categories
_CATEGORY_ALIASES: dict[str, BiasCategory] = {
    "gender": BiasCategory.GENDER,
    "gender bias": BiasCategory.GENDER,
    "racial": BiasCategory.RACIAL,
    "racial bias": BiasCategory.RACIAL,
    "race": BiasCategory.RACIAL,
    "age": BiasCategory.AGE,
    "age bias": BiasCategory.AGE,
    "age discrimination": BiasCategory.AGE,
    "socioeconomic": BiasCategory.SOCIOECONOMIC,
    "socioeconomic bias": BiasCategory.SOCIOECONOMIC,
    "socio-economic bias": BiasCategory.SOCIOECONOMIC,
    "language": BiasCategory.LANGUAGE,
    "language bias": BiasCategory.LANGUAGE,
}


def classify_category(raw_type: str) -> str:
    """Canonical category for a "Type:" value.

    Known categories are matched case-insensitively; anything else keeps the
    model's own label. An empty value maps to UNRECOGNIZED_CATEGORY.
    """
    label = raw_type.strip().rstrip(".:;,").strip().strip("[]\"'").strip()
    if not label:
        return UNRECOGNIZED_CATEGORY
    known = _CATEGORY_ALIASES.get(label.lower())
    return known.value if known else label


def parse_confidence(block: str) -> tuple[int, str | None]:
    """Extract the confidence percentage from a block.

    Returns (confidence, anomaly). Confidence is clamped to 0..100.
    """
    match = _CONFIDENCE_PERCENT.search(block)
    anomaly = None
    if not match:
        match = _CONFIDENCE_BARE.search(block)
        if match:
            anomaly = "confidence without '%'"
    if not match:
        if _CONFIDENCE_LABEL.search(block):
            return 0, "malformed confidence"
        return 0, "missing confidence"

    try:
        value = round(float(match.group(1)))
    except ValueError:
        return 0, "malformed confidence"

    if value > 100:
        return 100, f"confidence {value} clamped to 100"
    return value, anomaly


def _parse_block(block: str, anomalies: list[str], index: int) -> BiasFinding:
    first_line, _, _ = block.partition("\n")
    raw_type = _INLINE_FIELD.split(first_line, maxsplit=1)[0]
    category = classify_category(raw_type)
    if category == UNRECOGNIZED_CATEGORY:
        anomalies.append(f"block {index}: empty type")

    quoted = ""
    text_match = _TEXT_QUOTED.search(block)
    if text_match:
        quoted = text_match.group(1).strip()
    else:
        bare = _TEXT_BARE.search(block)
        if bare:
            quoted = bare.group(1).strip()
            anomalies.append(f"block {index}: unquoted text")

    confidence, anomaly = parse_confidence(block)
    if anomaly:
        anomalies.append(f"block {index}: {anomaly}")

    alternative = ""
    alt_match = _ALTERNATIVE.search(block)
    if alt_match:
        alternative = alt_match.group(1).strip()

    return BiasFinding(
        category=category,
        quoted_text=quoted,
        confidence=confidence,
        alternative=alternative,
    )


def parse_bias_report(normalized_text: str) -> BiasReport:
    """Parse the normalized bias-detection response into findings.

    A report without any "Type:" marker is free text: zero findings, the
    whole text returned for display.
    """
    text = normalized_text or ""
    markers = list(_TYPE_MARKER.finditer(text))
    if not markers:
        return BiasReport(findings=[], display_text=text)

    findings: list[BiasFinding] = []
    anomalies: list[str] = []
    for index, marker in enumerate(markers):
        end = markers[index + 1].start() if index + 1 < len(markers) else len(text)
        findings.append(_parse_block(text[marker.end() : end], anomalies, index))

    if anomalies:
        logger.debug("Bias report parsed with %d anomalies: %s", len(anomalies), "; ".join(anomalies))

    return BiasReport(findings=findings, display_text=text, anomalies=anomalies)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def severity_for(category: str) -> Severity | None:
    try:
        return CATEGORY_CATALOGUE[BiasCategory(category)].severity
    except ValueError:
        return None


def icon_for(category: str) -> str:
    try:
        return CATEGORY_CATALOGUE[BiasCategory(category)].icon
    except ValueError:
        return UNRECOGNIZED_CATEGORY


def severity_color(severity: str | Severity | None) -> str:
    if severity is None:
        return DEFAULT_SEVERITY_COLOR
    key = severity.value if isinstance(severity, Severity) else severity.lower()
    return SEVERITY_COLORS.get(key, DEFAULT_SEVERITY_COLOR)
