"""
Offline fixtures for the OCR and NLP stages.

Used when a job runs in mock-AWS mode: known document keys resolve to a canned
multi-line text block, and analysis returns canned sentiment/entities, so a
full pipeline run needs no cloud access.

Dependencies: unicodedata (stdlib)
System role: Demo/offline data source for stage workers
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any


def normalize_document_key(value: str | None) -> str:
    """
    Normalize an S3 key for fixture matching.

    Strips accents, converts backslashes to slashes, collapses whitespace,
    trims and lower-cases.
    """
    decomposed = unicodedata.normalize("NFD", str(value or ""))
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    slashed = without_marks.replace("\\", "/")
    return re.sub(r"\s+", " ", slashed).strip().lower()


@dataclass(frozen=True)
class OfflineFixture:
    """A canned document: the keys that select it, its text and its analysis."""

    name: str
    marker: str
    keys: frozenset[str]
    lines: tuple[str, ...]
    analysis: dict[str, Any] = field(default_factory=dict)

    def matches(self, s3_key: str | None) -> bool:
        key = normalize_document_key(s3_key)
        if not key:
            return False
        if key in self.keys:
            return True
        return any(key.endswith("/" + candidate) for candidate in self.keys)

    def ocr_result(self) -> dict[str, Any]:
        text = "\n".join(self.lines)
        return {
            "text": text,
            "lineCount": len(self.lines),
            "source": self.marker,
            "textractJobId": None,
        }


USABILITY_REPORT = OfflineFixture(
    name="usability-report",
    marker="mock:usability-pdf",
    keys=frozenset(
        {
            "teste de usabilidade .pdf",
            "teste-de-usabilidade.pdf",
            "usability-test.pdf",
            "usability test .pdf",
        }
    ),
    lines=(
        "[mock:usability-pdf] Usability Test Report",
        "Goal: assess navigation clarity and efficiency of the main tasks.",
        "Audience: beginner and intermediate users of the system.",
        "Scenario 1: find the registration feature and finish the flow.",
        "Scenario 2: browse history, apply filters and export records.",
        "Metric - task success rate: 86%.",
        "Metric - mean time per task: 2min42s.",
        "Metric - observed error rate: 14%.",
        "Main issues found:",
        "1) Unclear labels on confirmation steps.",
        "2) Insufficient contrast on secondary elements.",
        "3) Too many clicks to complete the export task.",
        "Recommendations:",
        "a) Standardise naming and improve status feedback.",
        "b) Increase contrast and strengthen visual hierarchy.",
        "c) Remove steps from the critical flow and simplify navigation.",
        "Conclusion: positive overall experience, with room to improve accessibility and flow.",
    ),
    analysis={
        "sentiment": {
            "Sentiment": "NEUTRAL",
            "SentimentScore": {
                "Positive": 0.31,
                "Negative": 0.12,
                "Neutral": 0.54,
                "Mixed": 0.03,
            },
        },
        "entities": [
            {"Type": "OTHER", "Text": "usability", "Score": 0.99},
            {"Type": "OTHER", "Text": "test", "Score": 0.98},
            {"Type": "OTHER", "Text": "user", "Score": 0.97},
            {"Type": "OTHER", "Text": "flow", "Score": 0.97},
            {"Type": "QUANTITY", "Text": "2min42s", "Score": 0.96},
            {"Type": "QUANTITY", "Text": "86%", "Score": 0.96},
            {"Type": "OTHER", "Text": "accessibility", "Score": 0.95},
            {"Type": "OTHER", "Text": "navigation", "Score": 0.95},
        ],
    },
)

FIXTURES: tuple[OfflineFixture, ...] = (USABILITY_REPORT,)

DEFAULT_ANALYSIS: dict[str, Any] = {
    "sentiment": {
        "Sentiment": "NEUTRAL",
        "SentimentScore": {"Positive": 0.1, "Negative": 0.1, "Neutral": 0.8, "Mixed": 0.0},
    },
    "entities": [{"Type": "OTHER", "Text": "MOCK", "Score": 0.99}],
}


def find_fixture(s3_key: str | None) -> OfflineFixture | None:
    """Return the fixture selected by a document key, if any."""
    for fixture in FIXTURES:
        if fixture.matches(s3_key):
            return fixture
    return None


def mock_ocr_result(s3_key: str) -> dict[str, Any]:
    """Canned OCR output: the fixture text, or one synthetic line for unknown keys."""
    fixture = find_fixture(s3_key)
    if fixture is not None:
        return fixture.ocr_result()
    return {
        "text": f"MOCK OCR of file {s3_key}",
        "lineCount": 1,
        "source": "mock",
        "textractJobId": None,
    }


def mock_analysis(text: str) -> dict[str, Any]:
    """Canned NLP output: fixture-specific when the text carries a fixture marker."""
    for fixture in FIXTURES:
        if fixture.marker in text:
            return {
                "sentiment": dict(fixture.analysis["sentiment"]),
                "entities": list(fixture.analysis["entities"]),
            }
    return {
        "sentiment": dict(DEFAULT_ANALYSIS["sentiment"]),
        "entities": list(DEFAULT_ANALYSIS["entities"]),
    }
