"""
FasalPlanner - Rule-based crop suitability engine.
Scores every crop of a catalog against the farmer's region, soil type and land
size plus the current cropping season. Pure function of its inputs; the only
implicit input is the calendar month, which callers may pin explicitly.
"""
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, computed_field

from crop_catalog import CropCatalogEntry

# --- Feature weights ---
REGION_MATCH_SCORE = 35.0
REGION_ADJACENT_SCORE = 15.0
SOIL_MATCH_SCORE = 35.0
SOIL_SIMILAR_SCORE = 20.0
LAND_SUFFICIENT_SCORE = 20.0
LAND_SURPLUS_BONUS = 5.0
LAND_REDUCED_SCORE = 10.0
SEASON_IN_SCORE = 10.0
SEASON_OFF_SCORE = 3.0
SEASON_DEFAULT_SCORE = 5.0

# Farmer's region -> regions with a similar climate.
# Directional: a region missing here simply has no neighbours.
REGION_ADJACENCY: Dict[str, List[str]] = {
    "Punjab": ["Sindh", "KPK"],
    "Sindh": ["Punjab", "Balochistan"],
    "KPK": ["Punjab"],
    "Balochistan": ["Sindh"],
}

# Farmer's soil type -> soils with similar characteristics
SOIL_SIMILARITY: Dict[str, List[str]] = {
    "Loamy": ["Sandy Loam", "Clay"],
    "Sandy Loam": ["Loamy", "Sandy"],
    "Clay": ["Loamy", "Alluvial"],
    "Sandy": ["Sandy Loam"],
    "Alluvial": ["Loamy", "Clay"],
}


class SuitabilityResult(BaseModel):
    crop: CropCatalogEntry
    suitability_score: float
    reasons: List[str]

    @computed_field
    @property
    def score_percentage(self) -> str:
        return f"{self.suitability_score:.0f}%"

    @computed_field
    @property
    def suitability_level(self) -> str:
        return suitability_level(self.suitability_score)


# --- Season Detection ---

def get_season(month: int) -> str:
    """
    Cropping season for a calendar month (1-12).
    Rabi runs October through March, Kharif April through September.
    """
    if month >= 10 or month <= 3:
        return "rabi"
    return "kharif"


def get_season_display_name(season: str) -> str:
    """Human-readable season name."""
    names = {
        "rabi": "Rabi (Winter)",
        "kharif": "Kharif (Summer)",
    }
    return names.get(season, season.title())


# --- Feature scores ---

def region_score(suitable_regions: Sequence[str], region: str) -> float:
    if region in suitable_regions:
        return REGION_MATCH_SCORE
    neighbours = REGION_ADJACENCY.get(region, [])
    if any(r in neighbours for r in suitable_regions):
        return REGION_ADJACENT_SCORE
    return 0.0


def soil_score(suitable_soils: Sequence[str], soil_type: str) -> float:
    if soil_type in suitable_soils:
        return SOIL_MATCH_SCORE
    similar = SOIL_SIMILARITY.get(soil_type, [])
    if any(s in similar for s in suitable_soils):
        return SOIL_SIMILAR_SCORE
    return 0.0


def land_size_score(land_size: float, min_land_size: float) -> float:
    if land_size >= min_land_size:
        score = LAND_SUFFICIENT_SCORE
        if land_size >= min_land_size * 2:
            score += LAND_SURPLUS_BONUS
        return score
    if land_size >= min_land_size * 0.5:
        return LAND_REDUCED_SCORE
    return 0.0


def season_score(crop_season: str, month: int) -> float:
    """
    10 when the crop is in season (or grown year-round), 3 when its label names
    the other season, 5 when the label names neither.
    """
    if "Year-round" in crop_season:
        return SEASON_IN_SCORE

    is_rabi = get_season(month) == "rabi"
    if "Rabi" in crop_season and is_rabi:
        return SEASON_IN_SCORE
    if "Kharif" in crop_season and not is_rabi:
        return SEASON_IN_SCORE
    if "Rabi" in crop_season or "Kharif" in crop_season:
        return SEASON_OFF_SCORE
    return SEASON_DEFAULT_SCORE


def suitability_score(
    crop: CropCatalogEntry,
    region: str,
    soil_type: str,
    land_size: float,
    month: int,
) -> float:
    return (
        region_score(crop.suitable_regions, region)
        + soil_score(crop.suitable_soil_types, soil_type)
        + land_size_score(land_size, crop.min_land_size)
        + season_score(crop.season, month)
    )


def suitability_level(score: float) -> str:
    """Bucket an (unclamped) suitability score."""
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Moderate"
    return "Low"


def recommendation_reasons(
    crop: CropCatalogEntry,
    region: str,
    soil_type: str,
    land_size: float,
) -> List[str]:
    """One line per region/soil/land check, then season and water info."""
    reasons = []

    if region in crop.suitable_regions:
        reasons.append(f"✓ Well-suited for {region} region")
    else:
        reasons.append(f"△ Can be grown in {region} with care")

    if soil_type in crop.suitable_soil_types:
        reasons.append(f"✓ Ideal for {soil_type} soil")
    else:
        reasons.append(f"△ Adaptable to {soil_type} soil")

    if land_size >= crop.min_land_size:
        reasons.append(f"✓ Land size ({float(land_size)}ac) is sufficient")
    else:
        reasons.append("△ Consider larger land for better yield")

    reasons.append(f"📅 Growing season: {crop.season}")
    reasons.append(f"💧 Water requirement: {crop.water_requirement}")
    return reasons


def recommend(
    region: str,
    soil_type: str,
    land_size: float,
    catalog: Optional[List[CropCatalogEntry]],
    month: Optional[int] = None,
) -> List[SuitabilityResult]:
    """
    Rank catalog crops for a farm.

    Args:
        region: Farmer's region (e.g. "Punjab")
        soil_type: Farmer's soil type (e.g. "Loamy")
        land_size: Available land in acres (not validated)
        catalog: Crops to score; None or empty yields no results
        month: Calendar month 1-12 used for the season score, defaults to now

    Returns:
        Crops with a positive score, highest first. Equal scores keep
        catalog order.
    """
    if month is None:
        month = datetime.now().month

    results = []
    for crop in catalog or []:
        score = suitability_score(crop, region, soil_type, land_size, month)
        if score <= 0:
            continue
        results.append(
            SuitabilityResult(
                crop=crop,
                suitability_score=score,
                reasons=recommendation_reasons(crop, region, soil_type, land_size),
            )
        )

    results.sort(key=lambda r: r.suitability_score, reverse=True)
    return results
