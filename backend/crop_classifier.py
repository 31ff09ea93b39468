"""
FasalPlanner - Soil/weather feature classifier.

Scores a 7-feature measurement (N, P, K, temperature, humidity, pH, rainfall)
against 22 per-crop statistical profiles:

    score = -2.0 * distance + 0.1 * log_prob

where ``log_prob`` is the summed Gaussian log-likelihood under the crop's own
mean/std and ``distance`` the Euclidean distance between input and crop mean
after z-scoring both with the dataset-wide feature statistics. Scores are
turned into percentages with a temperature-scaled softmax and then rescaled
for display (top pick 85-95%, everything clamped to 20-95%). The rescaled
value is not a probability; the undistorted softmax output is kept alongside
it as ``raw_confidence``.

If the model is not ready, or scoring fails for any reason, a fixed
temperature/humidity rule table is returned instead. The classifier never
raises to its caller.
"""
import logging
import math
import time
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel

import config

logger = logging.getLogger(__name__)

FEATURE_NAMES = ("nitrogen", "phosphorus", "potassium", "temperature", "humidity", "ph", "rainfall")

# Dataset-wide z-score constants, one per feature (shared by every crop)
FEATURE_MEANS = np.array([50.55, 53.36, 48.15, 25.62, 71.48, 6.47, 103.46])
FEATURE_STDS = np.array([36.92, 32.99, 50.65, 5.06, 22.26, 0.77, 54.96])

SOFTMAX_TEMPERATURE = 0.5
DISTANCE_WEIGHT = 2.0
LOG_PROB_WEIGHT = 0.1
LOG_EPSILON = 1e-10
ZERO_STD_REPLACEMENT = 0.001

MIN_CONFIDENCE = 20.0
MAX_CONFIDENCE = 95.0
TOP_MATCH_RATIO = 0.9

# Crop key -> display metadata
CROP_INFO: Dict[str, Dict[str, str]] = {
    "apple": {"name": "Apple", "icon": "🍎", "season": "Rabi"},
    "banana": {"name": "Banana", "icon": "🍌", "season": "Kharif"},
    "blackgram": {"name": "Black Gram", "icon": "🫘", "season": "Kharif"},
    "chickpea": {"name": "Chickpea", "icon": "🫛", "season": "Rabi"},
    "coconut": {"name": "Coconut", "icon": "🥥", "season": "Year-round"},
    "coffee": {"name": "Coffee", "icon": "☕", "season": "Kharif"},
    "cotton": {"name": "Cotton", "icon": "🌿", "season": "Kharif"},
    "grapes": {"name": "Grapes", "icon": "🍇", "season": "Rabi"},
    "jute": {"name": "Jute", "icon": "🌾", "season": "Kharif"},
    "kidneybeans": {"name": "Kidney Beans", "icon": "🫘", "season": "Rabi"},
    "lentil": {"name": "Lentil", "icon": "🫛", "season": "Rabi"},
    "maize": {"name": "Maize", "icon": "🌽", "season": "Kharif"},
    "mango": {"name": "Mango", "icon": "🥭", "season": "Zaid"},
    "mothbeans": {"name": "Moth Beans", "icon": "🫘", "season": "Kharif"},
    "mungbean": {"name": "Mung Bean", "icon": "🫛", "season": "Kharif"},
    "muskmelon": {"name": "Muskmelon", "icon": "🍈", "season": "Zaid"},
    "orange": {"name": "Orange", "icon": "🍊", "season": "Rabi"},
    "papaya": {"name": "Papaya", "icon": "🍈", "season": "Year-round"},
    "pigeonpeas": {"name": "Pigeon Peas", "icon": "🫛", "season": "Kharif"},
    "pomegranate": {"name": "Pomegranate", "icon": "🍎", "season": "Rabi"},
    "rice": {"name": "Rice", "icon": "🌾", "season": "Kharif"},
    "watermelon": {"name": "Watermelon", "icon": "🍉", "season": "Zaid"},
}

# Crop key -> (means, stds), each ordered as FEATURE_NAMES
CROP_PROFILES: Dict[str, Tuple[Tuple[float, ...], Tuple[float, ...]]] = {
    "apple": ((20.8, 134.2, 199.9, 22.6, 92.0, 5.9, 112.7), (5.4, 8.7, 4.1, 2.0, 3.5, 0.5, 17.8)),
    "banana": ((100.2, 82.0, 50.0, 27.0, 80.4, 6.0, 104.6), (4.9, 7.7, 4.0, 2.0, 3.6, 0.5, 18.4)),
    "blackgram": ((40.0, 67.5, 19.2, 29.9, 65.1, 7.1, 67.9), (4.7, 8.2, 4.2, 2.0, 4.0, 0.5, 17.6)),
    "chickpea": ((40.1, 67.8, 79.9, 18.9, 16.9, 7.3, 80.1), (4.6, 7.5, 4.4, 2.0, 2.6, 0.5, 18.1)),
    "coconut": ((21.9, 16.9, 30.6, 27.0, 94.8, 6.0, 175.7), (5.2, 7.8, 4.0, 2.0, 2.6, 0.5, 47.6)),
    "coffee": ((101.2, 28.7, 30.0, 25.5, 58.9, 6.8, 158.1), (5.0, 8.0, 4.0, 2.0, 4.1, 0.5, 30.0)),
    "cotton": ((117.8, 46.2, 19.6, 24.0, 79.9, 7.0, 80.0), (5.5, 7.5, 4.1, 2.0, 3.9, 0.5, 17.8)),
    "grapes": ((23.2, 132.5, 200.1, 23.8, 81.9, 6.0, 69.6), (5.0, 8.6, 4.0, 2.0, 3.4, 0.5, 17.9)),
    "jute": ((78.4, 46.9, 39.8, 25.0, 80.0, 6.7, 174.8), (4.7, 7.6, 4.0, 2.0, 3.8, 0.5, 43.7)),
    "kidneybeans": ((20.8, 67.6, 20.0, 20.1, 21.6, 5.7, 60.6), (5.5, 8.4, 4.0, 2.0, 2.5, 0.5, 17.7)),
    "lentil": ((18.8, 68.1, 19.4, 24.5, 64.8, 6.9, 45.7), (5.1, 8.5, 4.2, 2.0, 4.2, 0.5, 14.7)),
    "maize": ((77.8, 48.4, 19.8, 22.4, 65.1, 6.3, 84.8), (4.8, 8.1, 4.0, 2.0, 3.5, 0.5, 16.8)),
    "mango": ((20.1, 27.2, 30.0, 31.2, 50.2, 5.8, 94.6), (5.0, 8.1, 4.0, 2.0, 3.1, 0.5, 17.2)),
    "mothbeans": ((21.5, 48.0, 20.3, 28.2, 48.1, 6.8, 51.2), (5.4, 7.8, 4.2, 2.0, 3.0, 0.5, 17.0)),
    "mungbean": ((21.0, 47.3, 19.9, 28.5, 85.5, 6.7, 48.8), (5.2, 8.0, 4.2, 2.0, 3.2, 0.5, 17.0)),
    "muskmelon": ((100.3, 17.7, 50.0, 28.7, 92.3, 6.4, 24.6), (4.9, 7.8, 3.9, 2.0, 2.6, 0.5, 6.6)),
    "orange": ((19.6, 16.5, 10.0, 22.8, 92.2, 7.0, 110.5), (5.0, 7.8, 4.0, 2.0, 2.5, 0.5, 17.7)),
    "papaya": ((50.0, 59.2, 50.0, 33.7, 92.4, 6.5, 142.6), (4.8, 8.0, 4.0, 2.0, 2.5, 0.5, 28.5)),
    "pigeonpeas": ((20.7, 67.7, 20.4, 27.7, 48.6, 5.6, 149.5), (5.5, 8.4, 4.2, 2.0, 3.2, 0.5, 29.9)),
    "pomegranate": ((18.9, 18.7, 40.2, 21.8, 90.1, 6.4, 107.5), (5.0, 7.9, 4.0, 2.0, 2.8, 0.5, 17.5)),
    "rice": ((79.9, 47.6, 39.9, 23.7, 82.3, 6.4, 236.2), (4.8, 8.1, 4.0, 2.0, 3.3, 0.5, 30.9)),
    "watermelon": ((99.4, 17.0, 50.0, 25.6, 85.1, 6.5, 50.2), (4.8, 7.6, 4.0, 2.0, 3.0, 0.5, 17.7)),
}

CROP_LABELS: List[str] = list(CROP_PROFILES)

_PROFILE_MEANS = np.array([CROP_PROFILES[c][0] for c in CROP_LABELS])
_PROFILE_STDS = np.array([CROP_PROFILES[c][1] for c in CROP_LABELS])

# (key, name, icon, season, confidence)
_FALLBACK_HOT_HUMID = [
    ("rice", "Rice", "🌾", "Kharif", 85.0),
    ("maize", "Maize", "🌽", "Kharif", 75.0),
]
_FALLBACK_COOL_DRY = [
    ("wheat", "Wheat", "🌾", "Rabi", 85.0),
    ("chickpea", "Chickpea", "🫛", "Rabi", 75.0),
]
_FALLBACK_OTHER = [
    ("cotton", "Cotton", "🌿", "Kharif", 70.0),
    ("mungbean", "Mung Bean", "🫛", "Kharif", 65.0),
]
_FALLBACK_GENERAL = [
    ("banana", "Banana", "🍌", "Kharif", 60.0),
    ("mango", "Mango", "🥭", "Zaid", 55.0),
    ("papaya", "Papaya", "🍈", "Year-round", 50.0),
]

DEFAULT_SOIL_VALUES: Dict[str, Dict[str, float]] = {
    "loamy": {"N": 50, "P": 50, "K": 50, "pH": 6.5},
    "sandy loam": {"N": 30, "P": 35, "K": 40, "pH": 6.0},
    "clay": {"N": 60, "P": 45, "K": 55, "pH": 7.0},
    "alluvial": {"N": 70, "P": 55, "K": 60, "pH": 7.2},
    "sandy": {"N": 20, "P": 25, "K": 30, "pH": 5.5},
    "black": {"N": 55, "P": 50, "K": 65, "pH": 7.5},
}
FALLBACK_SOIL_VALUES: Dict[str, float] = {"N": 45, "P": 45, "K": 45, "pH": 6.5}

# Annual rainfall estimate (mm) by region
REGION_RAINFALL: Dict[str, float] = {
    "punjab": 500,
    "sindh": 200,
    "kpk": 800,
    "balochistan": 150,
}
FALLBACK_RAINFALL = 400.0


class ModelState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FALLBACK_ONLY = "fallback_only"


class ClassificationResult(BaseModel):
    crop_key: str
    crop_name: str
    icon: str
    season: str
    confidence: float
    raw_confidence: Optional[float] = None

    def __str__(self) -> str:
        return f"{self.crop_name}: {self.confidence:.1f}%"


def default_soil_values(soil_type: str) -> Dict[str, float]:
    """Typical N/P/K/pH for a soil type name (case-insensitive)."""
    values = DEFAULT_SOIL_VALUES.get((soil_type or "").lower(), FALLBACK_SOIL_VALUES)
    return dict(values)


def estimated_rainfall(region: str) -> float:
    """Typical annual rainfall in mm for a region name (case-insensitive)."""
    return float(REGION_RAINFALL.get((region or "").lower(), FALLBACK_RAINFALL))


def gaussian_probability(x, mean, std):
    """Normal density; a zero std is replaced to avoid division by zero."""
    std = np.where(std == 0, ZERO_STD_REPLACEMENT, std)
    exponent = np.exp(-((x - mean) ** 2) / (2 * std ** 2))
    return (1 / (math.sqrt(2 * math.pi) * std)) * exponent


def normalize_features(features):
    return (features - FEATURE_MEANS) / FEATURE_STDS


def crop_scores(features: np.ndarray) -> np.ndarray:
    """Combined likelihood/distance score per crop, in CROP_LABELS order."""
    densities = gaussian_probability(features, _PROFILE_MEANS, _PROFILE_STDS)
    log_prob = np.log(densities + LOG_EPSILON).sum(axis=1)

    diff = normalize_features(features) - normalize_features(_PROFILE_MEANS)
    distance = np.sqrt((diff ** 2).sum(axis=1))

    return -distance * DISTANCE_WEIGHT + log_prob * LOG_PROB_WEIGHT


def softmax_confidences(scores: np.ndarray, temperature: float = SOFTMAX_TEMPERATURE) -> np.ndarray:
    """Percentages summing to 100."""
    scaled = scores / temperature
    exp_scores = np.exp(scaled - scaled.max())
    return exp_scores / exp_scores.sum() * 100


def rescale_confidence(raw_confidence: float, top_confidence: float) -> float:
    """Display transform: top matches land in 85-95, the rest in 50-95, floor 20."""
    if top_confidence > 0:
        ratio = raw_confidence / top_confidence
        if ratio > TOP_MATCH_RATIO:
            scaled = 85 + (ratio - TOP_MATCH_RATIO) * 100
        else:
            scaled = 50 + ratio * 45
    else:
        scaled = 50.0
    return min(max(scaled, MIN_CONFIDENCE), MAX_CONFIDENCE)


def _as_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def fallback_predictions(temperature, humidity) -> List[ClassificationResult]:
    """Fixed rule table used whenever the model cannot score."""
    temp = _as_float(temperature)
    hum = _as_float(humidity)
    if temp > 25 and hum > 60:
        primary = _FALLBACK_HOT_HUMID
    elif temp < 25 and hum < 60:
        primary = _FALLBACK_COOL_DRY
    else:
        primary = _FALLBACK_OTHER

    return [
        ClassificationResult(crop_key=key, crop_name=name, icon=icon, season=season, confidence=conf)
        for key, name, icon, season, conf in primary + _FALLBACK_GENERAL
    ]


class CropClassifier:
    """Profile-based crop classifier with an explicit load state."""

    def __init__(self, state: ModelState = ModelState.UNINITIALIZED):
        self.state = state

    @property
    def is_model_loaded(self) -> bool:
        return self.state is ModelState.READY

    def load_model(self, delay: Optional[float] = None) -> ModelState:
        """
        Mark the model ready. The profiles are compiled in, so the delay is
        purely cosmetic; pass 0 to skip it.
        """
        if delay is None:
            delay = config.MODEL_LOAD_DELAY
        if delay > 0:
            time.sleep(delay)
        self.state = ModelState.READY
        logger.info("Crop classifier loaded (%d crop profiles)", len(CROP_LABELS))
        return self.state

    def classify(
        self,
        nitrogen: float,
        phosphorus: float,
        potassium: float,
        temperature: float,
        humidity: float,
        ph: float,
        rainfall: float,
    ) -> List[ClassificationResult]:
        """All 22 crops, highest confidence first; falls back on any failure."""
        if not self.is_model_loaded:
            logger.warning("Crop classifier not loaded (%s); using fallback", self.state.value)
            return fallback_predictions(temperature, humidity)

        try:
            features = np.array(
                [nitrogen, phosphorus, potassium, temperature, humidity, ph, rainfall],
                dtype=float,
            )
            with np.errstate(over="raise", invalid="raise", divide="raise", under="ignore"):
                scores = crop_scores(features)
                raw = softmax_confidences(scores)
            if not np.all(np.isfinite(raw)):
                raise ValueError("non-finite confidence")

            top_confidence = float(raw.max())
            predictions = []
            for i, crop in enumerate(CROP_LABELS):
                info = CROP_INFO[crop]
                raw_conf = float(raw[i])
                predictions.append(
                    ClassificationResult(
                        crop_key=crop,
                        crop_name=info["name"],
                        icon=info["icon"],
                        season=info["season"],
                        confidence=rescale_confidence(raw_conf, top_confidence),
                        raw_confidence=raw_conf,
                    )
                )
        except Exception as e:
            logger.error("Crop prediction failed: %s; using fallback", e)
            return fallback_predictions(temperature, humidity)

        predictions.sort(key=lambda p: p.confidence, reverse=True)
        logger.info("Crop prediction top: %s", predictions[0])
        return predictions

    def top_n(
        self,
        nitrogen: float,
        phosphorus: float,
        potassium: float,
        temperature: float,
        humidity: float,
        ph: float,
        rainfall: float,
        n: int = 5,
    ) -> List[ClassificationResult]:
        predictions = self.classify(nitrogen, phosphorus, potassium, temperature, humidity, ph, rainfall)
        return predictions[:n]
