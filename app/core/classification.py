"""
Scam category classification.

The engine only needs *a* category label to group patterns for similarity
search, so classifiers here are best-effort: the engine replaces any
failure with a default category.
"""

import re
from typing import Dict, List, Optional, Protocol

from google import genai
from google.genai import types

from app.core.logging import get_logger

logger = get_logger(__name__)

OTHER_CATEGORY = "Other"

SCAM_CATEGORIES = [
    "Digital Arrest",
    "Bank Fraud",
    "KYC Update",
    "Lottery/Prize",
    "Job Offer",
    "Investment",
    "Romance",
    OTHER_CATEGORY,
]


class CategoryClassificationError(RuntimeError):
    """Raised when a classifier cannot produce a category."""


class CategoryClassifier(Protocol):
    """Assigns a scam category to a script."""

    provider: str

    def classify(self, script: str) -> str:
        ...


def normalize_category(label: Optional[str]) -> str:
    """
    Map a free-form label onto one of the known categories.

    Matching ignores case, surrounding quotes and punctuation; unknown labels
    become ``Other``.
    """
    if not label:
        return OTHER_CATEGORY

    cleaned = re.sub(r'[^a-z/ ]', '', label.strip().lower()).strip()
    for category in SCAM_CATEGORIES:
        if cleaned == category.lower():
            return category
    for category in SCAM_CATEGORIES:
        if category.lower() in cleaned:
            return category
    return OTHER_CATEGORY


class KeywordCategoryClassifier:
    """Offline classifier scoring scripts against per-category indicator lists."""

    provider = "keyword"

    CATEGORY_INDICATORS: Dict[str, List[str]] = {
        "Digital Arrest": [
            'arrest', 'cbi', 'police', 'warrant', 'court', 'customs', 'narcotics',
            'money laundering', 'video call', 'detain'
        ],
        "Bank Fraud": [
            'bank', 'account', 'card', 'otp', 'pin', 'transaction', 'blocked',
            'debit', 'credit', 'cvv'
        ],
        "KYC Update": [
            'kyc', 'update', 'aadhaar', 'aadhar', 'pan', 'verify', 'expire',
            'documents', 'link', 'sim'
        ],
        "Lottery/Prize": [
            'lottery', 'prize', 'winner', 'won', 'jeete', 'lucky draw', 'reward',
            'congratulations', 'claim', 'gift'
        ],
        "Job Offer": [
            'job', 'salary', 'work from home', 'hiring', 'part time', 'vacancy',
            'registration fee', 'interview', 'task', 'earn'
        ],
        "Investment": [
            'investment', 'invest', 'profit', 'returns', 'trading', 'stock',
            'crypto', 'scheme', 'double', 'guaranteed'
        ],
        "Romance": [
            'love', 'marry', 'relationship', 'lonely', 'darling', 'sweetheart',
            'meet', 'gift parcel', 'miss you', 'dating'
        ],
    }

    def __init__(self, min_score: float = 0.1):
        self.min_score = min_score
        # Whole-word matching keeps "pan" out of "company"
        self._patterns = {
            category: [re.compile(r'\b' + re.escape(indicator) + r'\b') for indicator in indicators]
            for category, indicators in self.CATEGORY_INDICATORS.items()
        }

    def classify(self, script: str) -> str:
        text = (script or "").lower()

        scores = {
            category: sum(1 for pattern in patterns if pattern.search(text)) / len(patterns)
            for category, patterns in self._patterns.items()
        }

        best_category = max(scores, key=scores.get)
        if scores[best_category] >= self.min_score:
            return best_category
        return OTHER_CATEGORY


class GeminiCategoryClassifier:
    """Asks a Gemini model to pick one of the known categories."""

    provider = "gemini"

    PROMPT_TEMPLATE = """Classify this scam script into one of these categories:
{categories}

Script: "{script}"

Return only the category name."""

    def __init__(self, api_key: str, model_name: str = "gemini-2.0-flash", timeout_seconds: float = 10.0):
        if not api_key:
            raise ValueError("A Gemini API key is required")

        self.model_name = model_name
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )

    def build_prompt(self, script: str) -> str:
        categories = "\n".join(f"- {category}" for category in SCAM_CATEGORIES)
        return self.PROMPT_TEMPLATE.format(categories=categories, script=script)

    def classify(self, script: str) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=self.build_prompt(script),
                config=types.GenerateContentConfig(temperature=0.0, candidate_count=1),
            )
        except Exception as e:
            raise CategoryClassificationError(f"Gemini classification failed: {e}") from e

        if not response.text:
            raise CategoryClassificationError("Gemini returned an empty classification")

        return normalize_category(response.text)


def build_classifier(
    provider: str = "keyword",
    gemini_api_key: Optional[str] = None,
    model_name: str = "gemini-2.0-flash",
    timeout_seconds: float = 10.0,
) -> CategoryClassifier:
    """Create the configured classifier, falling back to keywords without a Gemini key."""
    if provider == "gemini":
        if gemini_api_key:
            return GeminiCategoryClassifier(gemini_api_key, model_name, timeout_seconds)
        logger.warning("Gemini classifier requested without an API key, using keyword classifier")
    elif provider != "keyword":
        raise ValueError(f"Unknown classifier provider: {provider}")

    return KeywordCategoryClassifier()
