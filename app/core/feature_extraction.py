"""
Feature extraction for scam scripts.

Turns a raw script into a fixed-length numeric vector made of keyword
densities, structural flags, an urgency score, extraction-time context and
filler slots standing in for a text embedding.

Feature layout:
    0  urgency keyword density
    1  authority keyword density
    2  threat keyword density
    3  script length / 1000
    4  number of digit runs / 10
    5  phone number present
    6  URL present
    7  payment handle present (local@provider, no domain dot)
    8  threat language present
    9  urgency score
    10 day of week / 7 (Sunday = 0)
    11 hour of day / 24
    12+ filler
"""

import re
from datetime import datetime
from typing import Callable, List, Optional, Sequence

import numpy as np
from sklearn.feature_extraction.text import HashingVectorizer

from app.core.logging import get_logger
from app.core.utils import utc_now

logger = get_logger(__name__)

CORE_FEATURE_COUNT = 12

URGENCY_DENSITY_INDEX = 0
AUTHORITY_DENSITY_INDEX = 1
THREAT_DENSITY_INDEX = 2
LENGTH_INDEX = 3
NUMBER_COUNT_INDEX = 4
PHONE_FLAG_INDEX = 5
URL_FLAG_INDEX = 6
PAYMENT_HANDLE_FLAG_INDEX = 7
THREAT_LANGUAGE_FLAG_INDEX = 8
URGENCY_SCORE_INDEX = 9
DAY_OF_WEEK_INDEX = 10
HOUR_OF_DAY_INDEX = 11

FILLER_STRATEGIES = ("hashed", "random")


class FeatureExtractor:
    """Extracts fixed-length feature vectors from scam scripts."""

    URGENCY_TERMS = ['urgent', 'immediate', 'act now', 'limited time', 'expire']
    AUTHORITY_TERMS = ['police', 'court', 'government', 'bank', 'official']
    THREAT_TERMS = ['arrest', 'suspend', 'block', 'legal action', 'penalty']

    # Used for the threat-language flag; broader than THREAT_TERMS.
    THREAT_LANGUAGE = ['arrest', 'suspend', 'block', 'legal', 'court', 'police']

    # Counted as raw substrings, so "now" also fires inside "know".
    URGENCY_INDICATORS = ['immediately', 'urgent', 'now', 'today', 'asap']

    PHONE_PATTERN = re.compile(r'(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}')
    URL_PATTERN = re.compile(r'https?://\S+|www\.\S+', re.IGNORECASE)
    PAYMENT_HANDLE_PATTERN = re.compile(r'[A-Za-z0-9._-]+@[A-Za-z]+(?![A-Za-z0-9]|\.[A-Za-z])')
    NUMBER_PATTERN = re.compile(r'\d+')

    def __init__(
        self,
        dimension: int = 50,
        filler_strategy: str = "hashed",
        filler_scale: float = 0.1,
        random_seed: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the feature extractor.

        Args:
            dimension: Length of every produced vector
            filler_strategy: 'hashed' for a deterministic character n-gram
                projection of the script, 'random' for uniform noise
            filler_scale: Upper bound of filler values
            random_seed: Seed for the 'random' filler generator
            clock: Source of the extraction time used for temporal features
        """
        if dimension < CORE_FEATURE_COUNT:
            raise ValueError(
                f"Feature dimension must be at least {CORE_FEATURE_COUNT}, got {dimension}"
            )
        if filler_strategy not in FILLER_STRATEGIES:
            raise ValueError(f"Unknown filler strategy: {filler_strategy}")

        self.dimension = dimension
        self.filler_strategy = filler_strategy
        self.filler_scale = filler_scale
        self.clock = clock
        self._rng = np.random.default_rng(random_seed)

        self._filler_count = dimension - CORE_FEATURE_COUNT
        self._hasher = None
        if self._filler_count and filler_strategy == "hashed":
            self._hasher = HashingVectorizer(
                n_features=self._filler_count,
                analyzer='char_wb',
                ngram_range=(2, 4),
                alternate_sign=False,
                norm='l2',
                lowercase=True,
            )

    def extract(self, script: str) -> List[float]:
        """
        Extract the feature vector for a script.

        Never raises for text input; the result always has ``dimension``
        finite elements.
        """
        script = script or ""
        text = script.lower()
        now = self.clock()

        features = [0.0] * CORE_FEATURE_COUNT
        features[URGENCY_DENSITY_INDEX] = self.keyword_density(script, self.URGENCY_TERMS)
        features[AUTHORITY_DENSITY_INDEX] = self.keyword_density(script, self.AUTHORITY_TERMS)
        features[THREAT_DENSITY_INDEX] = self.keyword_density(script, self.THREAT_TERMS)
        features[LENGTH_INDEX] = len(script) / 1000
        features[NUMBER_COUNT_INDEX] = len(self.NUMBER_PATTERN.findall(script)) / 10
        features[PHONE_FLAG_INDEX] = 1.0 if self.PHONE_PATTERN.search(script) else 0.0
        features[URL_FLAG_INDEX] = 1.0 if self.URL_PATTERN.search(script) else 0.0
        features[PAYMENT_HANDLE_FLAG_INDEX] = 1.0 if self.PAYMENT_HANDLE_PATTERN.search(script) else 0.0
        features[THREAT_LANGUAGE_FLAG_INDEX] = (
            1.0 if any(term in text for term in self.THREAT_LANGUAGE) else 0.0
        )
        features[URGENCY_SCORE_INDEX] = self.urgency_score(script)

        # Extraction-time context: the same script extracted at different
        # times yields different vectors.
        features[DAY_OF_WEEK_INDEX] = (now.isoweekday() % 7) / 7
        features[HOUR_OF_DAY_INDEX] = now.hour / 24

        features.extend(self._filler(script))
        return features

    def keyword_density(self, script: str, terms: Sequence[str]) -> float:
        """Fraction of whitespace-delimited tokens that contain any of ``terms``."""
        tokens = script.lower().split()
        if not tokens:
            return 0.0

        hits = 0
        for position, token in enumerate(tokens):
            for term in terms:
                width = term.count(' ') + 1
                window = token if width == 1 else ' '.join(tokens[position:position + width])
                if term in window:
                    hits += 1
                    break

        return hits / len(tokens)

    def urgency_score(self, script: str) -> float:
        """Occurrences of urgency indicators divided by 10 (not capped)."""
        text = (script or "").lower()
        return sum(text.count(indicator) for indicator in self.URGENCY_INDICATORS) / 10

    def _filler(self, script: str) -> List[float]:
        if not self._filler_count:
            return []

        if self._hasher is not None:
            projection = self._hasher.transform([script]).toarray()[0]
            values = projection * self.filler_scale
        else:
            values = self._rng.uniform(0.0, self.filler_scale, self._filler_count)

        return [float(value) for value in values]
