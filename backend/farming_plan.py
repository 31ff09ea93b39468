"""
FasalPlanner - Farming plan date contract and plan generation.

A plan is anchored on a sowing date; every activity carries an offset in days
from sowing (negative for preparation work) that is turned into a calendar
date here. Activities can come from the text-generation API or from one of
two fixed schedules when the API is unavailable.
"""
import json
import logging
import math
import re
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import BaseModel, Field

import config

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    PREPARATION = "preparation"
    SOWING = "sowing"
    IRRIGATION = "irrigation"
    FERTILIZER = "fertilizer"
    PEST_CONTROL = "pestControl"
    MAINTENANCE = "maintenance"
    HARVESTING = "harvesting"
    CUSTOM = "custom"


ACTIVITY_ICONS = {
    ActivityType.PREPARATION: "🚜",
    ActivityType.SOWING: "🌱",
    ActivityType.IRRIGATION: "💧",
    ActivityType.FERTILIZER: "🧪",
    ActivityType.PEST_CONTROL: "🐛",
    ActivityType.MAINTENANCE: "🔧",
    ActivityType.HARVESTING: "🌾",
    ActivityType.CUSTOM: "📝",
}


class FarmingActivity(BaseModel):
    id: str
    title: str
    description: str = ""
    date: datetime
    type: ActivityType
    is_completed: bool = False
    is_custom: bool = False

    @property
    def icon(self) -> str:
        return ACTIVITY_ICONS[self.type]

    def days_from_sowing(self, sowing_date: datetime) -> int:
        return (self.date - sowing_date).days


class FarmingPlan(BaseModel):
    id: str = ""
    crop_id: str
    crop_name: str
    user_id: str = ""
    sowing_date: datetime
    harvest_date: datetime
    activities: List[FarmingActivity]
    created_at: datetime = Field(default_factory=datetime.now)
    is_ai_generated: bool = False


def parse_activity_type(value: str) -> ActivityType:
    """Generator category -> ActivityType; anything unknown is maintenance."""
    lookup = {t.value.lower(): t for t in ActivityType if t is not ActivityType.CUSTOM}
    return lookup.get(str(value or "").strip().lower(), ActivityType.MAINTENANCE)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _build_activities(sowing_date: datetime, steps: List[Tuple[str, str, int, ActivityType]]) -> List[FarmingActivity]:
    return [
        FarmingActivity(
            id=str(i + 1),
            title=title,
            description=description,
            date=sowing_date + timedelta(days=offset),
            type=activity_type,
        )
        for i, (title, description, offset, activity_type) in enumerate(steps)
    ]


def parse_activities(text: str, sowing_date: datetime) -> List[FarmingActivity]:
    """
    Parse the JSON array embedded in generator output.

    Each item may carry title, description, daysFromSowing (a whole number,
    default 0) and type. Returns [] when no valid array is found or any item
    cannot be turned into a dated activity.
    """
    match = re.search(r"\[[\s\S]*\]", text or "")
    if match is None:
        logger.warning("No JSON array found in plan generator response")
        return []

    try:
        items = json.loads(match.group(0))
        activities = []
        for i, item in enumerate(items):
            days = item.get("daysFromSowing")
            if days is None:
                days = 0
            elif isinstance(days, bool) or not isinstance(days, int):
                raise ValueError(f"daysFromSowing must be a whole number, got {days!r}")
            activities.append(
                FarmingActivity(
                    id=str(i + 1),
                    title=item.get("title") or f"Activity {i + 1}",
                    description=item.get("description") or "",
                    date=sowing_date + timedelta(days=days),
                    type=parse_activity_type(item.get("type") or "maintenance"),
                )
            )
        return activities
    except (ValueError, TypeError, AttributeError, OverflowError) as e:
        logger.error("Error parsing plan generator response: %s", e)
        return []


def fallback_activities(crop_name: str, sowing_date: datetime, growing_duration_days: int) -> List[FarmingActivity]:
    """Fixed 13-step schedule used when the generator is unavailable."""
    d = growing_duration_days
    steps = [
        ("Land Preparation", "Prepare the land by plowing, leveling, and removing debris", -7, ActivityType.PREPARATION),
        ("Soil Testing", "Test soil pH and nutrient levels before sowing", -5, ActivityType.PREPARATION),
        (f"Sowing {crop_name}", "Sow seeds at appropriate depth and spacing for optimal growth", 0, ActivityType.SOWING),
        ("First Irrigation", "Light irrigation immediately after sowing", 1, ActivityType.IRRIGATION),
        ("Germination Check", "Check for seed germination and replant if needed", 7, ActivityType.MAINTENANCE),
        ("First Weeding", "Remove weeds to reduce competition for nutrients", 14, ActivityType.MAINTENANCE),
        ("Basal Fertilizer Application", "Apply nitrogen and phosphorus fertilizers", 21, ActivityType.FERTILIZER),
        ("Second Irrigation", "Deep irrigation for root development", 28, ActivityType.IRRIGATION),
        ("Pest Inspection", "Check for pest infestation and diseases", 35, ActivityType.PEST_CONTROL),
        ("Top Dressing Fertilizer", "Apply second dose of nitrogen fertilizer", 45, ActivityType.FERTILIZER),
        ("Flowering Stage Care", "Ensure adequate water and nutrients during flowering", _round_half_up(d * 0.5), ActivityType.IRRIGATION),
        ("Pre-Harvest Assessment", "Check crop maturity indicators", d - 7, ActivityType.MAINTENANCE),
        ("Harvesting", f"Harvest the mature {crop_name} crop", d, ActivityType.HARVESTING),
    ]
    return _build_activities(sowing_date, steps)


def default_plan(
    crop_id: str,
    crop_name: str,
    growing_duration_days: int,
    user_id: str = "",
    start_date: Optional[datetime] = None,
) -> FarmingPlan:
    """Standard 10-step plan without the generator."""
    sowing = start_date or datetime.now()
    d = growing_duration_days
    steps = [
        ("Land Preparation", "Prepare the land by plowing and leveling", -7, ActivityType.PREPARATION),
        ("Sowing", "Sow the seeds at appropriate depth and spacing", 0, ActivityType.SOWING),
        ("First Irrigation", "Water the field after sowing", 1, ActivityType.IRRIGATION),
        ("First Fertilizer Application", "Apply basal dose of fertilizer", 21, ActivityType.FERTILIZER),
        ("Second Irrigation", "Water the field for healthy growth", 30, ActivityType.IRRIGATION),
        ("Second Fertilizer Application", "Apply top dressing of fertilizer", 45, ActivityType.FERTILIZER),
        ("Weeding", "Remove weeds from the field", 35, ActivityType.MAINTENANCE),
        ("Pest Control", "Apply pest control measures if needed", 50, ActivityType.PEST_CONTROL),
        ("Third Irrigation", "Water the field during flowering stage", _round_half_up(d * 0.6), ActivityType.IRRIGATION),
        ("Harvesting", "Harvest the mature crop", d, ActivityType.HARVESTING),
    ]
    return FarmingPlan(
        crop_id=crop_id,
        crop_name=crop_name,
        user_id=user_id,
        sowing_date=sowing,
        harvest_date=sowing + timedelta(days=d),
        activities=sorted(_build_activities(sowing, steps), key=lambda a: a.date),
    )


def build_plan_prompt(
    crop_name: str,
    region: str,
    soil_type: str,
    land_size: float,
    growing_duration_days: int,
    sowing_date: datetime,
) -> str:
    categories = ", ".join(t.value for t in ActivityType if t is not ActivityType.CUSTOM)
    return f"""You are an agricultural expert. Generate a detailed weekly farming calendar for:
- Crop: {crop_name}
- Region: {region} (Pakistan)
- Soil Type: {soil_type}
- Land Size: {land_size} acres
- Growing Duration: {growing_duration_days} days
- Sowing Date: {sowing_date.day}/{sowing_date.month}/{sowing_date.year}

Generate 12-15 farming activities with EXACT dates. Each activity should include:
1. title (short, clear)
2. description (practical advice, 1-2 sentences)
3. daysFromSowing (number of days from sowing date, can be negative for preparation)
4. type (one of: {categories})

Consider local Pakistani farming practices, weather patterns, and soil conditions.

RESPOND ONLY WITH A VALID JSON ARRAY in this exact format, no other text:
[
  {{"title": "Activity Name", "description": "What to do", "daysFromSowing": -7, "type": "preparation"}},
  {{"title": "Sowing", "description": "Plant seeds", "daysFromSowing": 0, "type": "sowing"}}
]
"""


def _response_text(data: Dict[str, Any]) -> str:
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""


class PlanGenerator:
    """Client for the text-generation API; degrades to the fixed schedule."""

    def __init__(self, api_key: Optional[str] = None, url: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.url = url or config.GEMINI_MODEL_URL
        self.timeout = timeout or config.GEMINI_TIMEOUT_SECONDS

    def generate_activities(
        self,
        crop_name: str,
        region: str,
        soil_type: str,
        land_size: float,
        growing_duration_days: int,
        sowing_date: datetime,
    ) -> Tuple[List[FarmingActivity], bool]:
        """Returns (activities, generated_by_api)."""
        if not self.api_key:
            logger.warning("No text-generation API key configured; using fallback plan")
            return fallback_activities(crop_name, sowing_date, growing_duration_days), False

        prompt = build_plan_prompt(crop_name, region, soil_type, land_size, growing_duration_days, sowing_date)
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.7, "maxOutputTokens": 2048},
        }
        try:
            response = requests.post(
                self.url,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
            if response.status_code == 200:
                activities = parse_activities(_response_text(response.json()), sowing_date)
                if activities:
                    logger.info("Generated %d plan activities for %s", len(activities), crop_name)
                    return activities, True
            else:
                logger.error("Plan generator error: HTTP %s", response.status_code)
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error("Plan generator request failed: %s", e)

        return fallback_activities(crop_name, sowing_date, growing_duration_days), False

    def generate_plan(
        self,
        crop_id: str,
        crop_name: str,
        growing_duration_days: int,
        region: str,
        soil_type: str,
        land_size: float,
        user_id: str = "",
        start_date: Optional[datetime] = None,
    ) -> FarmingPlan:
        sowing = start_date or datetime.now()
        activities, generated = self.generate_activities(
            crop_name, region, soil_type, land_size, growing_duration_days, sowing
        )
        return FarmingPlan(
            crop_id=crop_id,
            crop_name=crop_name,
            user_id=user_id,
            sowing_date=sowing,
            harvest_date=sowing + timedelta(days=growing_duration_days),
            activities=sorted(activities, key=lambda a: a.date),
            is_ai_generated=generated,
        )
