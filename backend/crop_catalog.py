"""
FasalPlanner - Crop catalog records and the built-in default catalog.
The catalog store hands back plain key-value documents; entries are frozen
once loaded so a scoring call always sees the same data.
"""
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict


class CropCatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    image_url: str = ""
    suitable_regions: Tuple[str, ...] = ()
    suitable_soil_types: Tuple[str, ...] = ()
    min_land_size: float = 0.0
    growing_duration_days: int = 90
    season: str = "All Season"
    expected_yield_per_acre: float = 0.0
    water_requirement: str = "Medium"


AVAILABLE_REGIONS = ["Punjab", "Sindh", "KPK", "Balochistan"]
AVAILABLE_SOIL_TYPES = ["Loamy", "Sandy Loam", "Clay", "Sandy", "Alluvial"]

# Lower-cased crop name (and common alias) -> emoji
CROP_ICONS: Dict[str, str] = {
    "wheat": "🌾",
    "rice": "🌾",
    "corn": "🌽",
    "maize": "🌽",
    "maize (corn)": "🌽",
    "cotton": "🌿",
    "sugarcane": "🎋",
    "potato": "🥔",
    "tomato": "🍅",
    "onion": "🧅",
    "soybean": "🫘",
    "apple": "🍎",
    "banana": "🍌",
    "blackgram": "🫘",
    "black gram": "🫘",
    "chickpea": "🫛",
    "coconut": "🥥",
    "coffee": "☕",
    "grapes": "🍇",
    "jute": "🌾",
    "kidneybeans": "🫘",
    "kidney beans": "🫘",
    "lentil": "🫛",
    "mango": "🥭",
    "mothbeans": "🫘",
    "moth beans": "🫘",
    "mungbean": "🫛",
    "mung bean": "🫛",
    "muskmelon": "🍈",
    "orange": "🍊",
    "papaya": "🍈",
    "pigeonpeas": "🫛",
    "pigeon peas": "🫛",
    "pomegranate": "🍎",
    "watermelon": "🍉",
}
DEFAULT_CROP_ICON = "🌱"


def crop_icon(name: str) -> str:
    """Emoji for a crop name; unknown crops get a seedling."""
    return CROP_ICONS.get((name or "").strip().lower(), DEFAULT_CROP_ICON)


def available_regions() -> List[str]:
    return list(AVAILABLE_REGIONS)


def available_soil_types() -> List[str]:
    return list(AVAILABLE_SOIL_TYPES)


def _field(data: Dict[str, Any], key: str, default: Any) -> Any:
    value = data.get(key)
    return default if value is None else value


def entry_from_document(doc_id: str, data: Dict[str, Any]) -> CropCatalogEntry:
    """
    Build a catalog entry from a stored document.
    Missing fields fall back to the same defaults the catalog store uses.
    """
    return CropCatalogEntry(
        id=doc_id,
        name=_field(data, "name", ""),
        description=_field(data, "description", ""),
        image_url=_field(data, "imageUrl", ""),
        suitable_regions=tuple(_field(data, "suitableRegions", ())),
        suitable_soil_types=tuple(_field(data, "suitableSoilTypes", ())),
        min_land_size=float(_field(data, "minLandSize", 0)),
        growing_duration_days=int(_field(data, "growingDurationDays", 90)),
        season=_field(data, "season", "All Season"),
        expected_yield_per_acre=float(_field(data, "expectedYieldPerAcre", 0)),
        water_requirement=_field(data, "waterRequirement", "Medium"),
    )


def entry_to_document(entry: CropCatalogEntry) -> Dict[str, Any]:
    """Store representation of an entry (the id lives on the document key)."""
    return {
        "name": entry.name,
        "description": entry.description,
        "imageUrl": entry.image_url,
        "suitableRegions": list(entry.suitable_regions),
        "suitableSoilTypes": list(entry.suitable_soil_types),
        "minLandSize": entry.min_land_size,
        "growingDurationDays": entry.growing_duration_days,
        "season": entry.season,
        "expectedYieldPerAcre": entry.expected_yield_per_acre,
        "waterRequirement": entry.water_requirement,
    }


# --- Built-in catalog for callers with no store ---

_DEFAULT_CATALOG: List[Dict[str, Any]] = [
    {
        "id": "wheat",
        "name": "Wheat",
        "description": "A staple grain crop grown in temperate climates",
        "suitable_regions": ["Punjab", "Sindh", "KPK", "Balochistan"],
        "suitable_soil_types": ["Loamy", "Clay", "Sandy Loam"],
        "min_land_size": 1.0,
        "growing_duration_days": 120,
        "season": "Rabi (Winter)",
        "expected_yield_per_acre": 40,
        "water_requirement": "Medium",
    },
    {
        "id": "rice",
        "name": "Rice",
        "description": "A major food crop requiring abundant water",
        "suitable_regions": ["Punjab", "Sindh"],
        "suitable_soil_types": ["Clay", "Loamy"],
        "min_land_size": 2.0,
        "growing_duration_days": 150,
        "season": "Kharif (Summer)",
        "expected_yield_per_acre": 35,
        "water_requirement": "High",
    },
    {
        "id": "cotton",
        "name": "Cotton",
        "description": "A cash crop important for textile industry",
        "suitable_regions": ["Punjab", "Sindh"],
        "suitable_soil_types": ["Sandy Loam", "Loamy", "Alluvial"],
        "min_land_size": 3.0,
        "growing_duration_days": 180,
        "season": "Kharif (Summer)",
        "expected_yield_per_acre": 12,
        "water_requirement": "Medium",
    },
    {
        "id": "sugarcane",
        "name": "Sugarcane",
        "description": "A tall perennial crop for sugar production",
        "suitable_regions": ["Punjab", "Sindh", "KPK"],
        "suitable_soil_types": ["Loamy", "Clay", "Alluvial"],
        "min_land_size": 2.0,
        "growing_duration_days": 365,
        "season": "Year-round",
        "expected_yield_per_acre": 250,
        "water_requirement": "High",
    },
    {
        "id": "maize",
        "name": "Maize (Corn)",
        "description": "A versatile grain crop used for food and feed",
        "suitable_regions": ["Punjab", "KPK", "Sindh"],
        "suitable_soil_types": ["Loamy", "Sandy Loam", "Alluvial"],
        "min_land_size": 1.0,
        "growing_duration_days": 100,
        "season": "Kharif & Rabi",
        "expected_yield_per_acre": 30,
        "water_requirement": "Medium",
    },
    {
        "id": "potato",
        "name": "Potato",
        "description": "A root vegetable crop with high demand",
        "suitable_regions": ["Punjab", "KPK"],
        "suitable_soil_types": ["Sandy Loam", "Loamy"],
        "min_land_size": 0.5,
        "growing_duration_days": 90,
        "season": "Rabi (Winter)",
        "expected_yield_per_acre": 100,
        "water_requirement": "Medium",
    },
    {
        "id": "tomato",
        "name": "Tomato",
        "description": "A popular vegetable crop grown throughout the year",
        "suitable_regions": ["Punjab", "Sindh", "KPK", "Balochistan"],
        "suitable_soil_types": ["Loamy", "Sandy Loam"],
        "min_land_size": 0.25,
        "growing_duration_days": 75,
        "season": "Year-round",
        "expected_yield_per_acre": 80,
        "water_requirement": "Medium",
    },
    {
        "id": "onion",
        "name": "Onion",
        "description": "A bulb vegetable essential for cooking",
        "suitable_regions": ["Punjab", "Sindh", "Balochistan"],
        "suitable_soil_types": ["Loamy", "Sandy Loam", "Alluvial"],
        "min_land_size": 0.25,
        "growing_duration_days": 120,
        "season": "Rabi (Winter)",
        "expected_yield_per_acre": 60,
        "water_requirement": "Low",
    },
]


def default_catalog() -> List[CropCatalogEntry]:
    """The fixed 8-crop catalog used when no store is available."""
    return [CropCatalogEntry(**row) for row in _DEFAULT_CATALOG]
