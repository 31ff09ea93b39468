"""
FasalPlanner - FastAPI backend: auth, rule-based crop suitability, feature
classifier, weather lookup and farming plans.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

import config
from auth import create_access_token, verify_token, verify_user
from crop_catalog import (
    CropCatalogEntry,
    available_regions,
    available_soil_types,
    default_catalog,
)
from crop_classifier import (
    ClassificationResult,
    CropClassifier,
    default_soil_values,
    estimated_rainfall,
)
from crop_recommender import SuitabilityResult, get_season, get_season_display_name, recommend
from farming_plan import FarmingPlan, PlanGenerator, default_plan
from weather_service import WeatherError, fetch_current_weather

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

classifier = CropClassifier()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # load_model blocks for MODEL_LOAD_DELAY seconds
    await run_in_threadpool(classifier.load_model)
    yield


app = FastAPI(title="FasalPlanner API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request/Response models ---
class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class RecommendRequest(BaseModel):
    region: str
    soil_type: str
    land_size: float
    # Omitted catalog -> built-in default catalog
    catalog: Optional[List[CropCatalogEntry]] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)


class RecommendResponse(BaseModel):
    success: bool = True
    season: str
    season_display: str
    total_crops_evaluated: int
    recommendations: List[SuitabilityResult]


class ClassifyRequest(BaseModel):
    nitrogen: float = 50
    phosphorus: float = 50
    potassium: float = 50
    temperature: float = 25
    humidity: float = 60
    ph: float = 6.5
    rainfall: float = 200
    top_n: Optional[int] = Field(default=None, ge=1)


class ClassifyResponse(BaseModel):
    success: bool = True
    model_state: str
    predictions: List[ClassificationResult]


class FeatureSuggestion(BaseModel):
    region: str
    soil_type: str
    nitrogen: float
    phosphorus: float
    potassium: float
    temperature: float
    humidity: float
    ph: float
    rainfall: float
    weather_available: bool


class FarmingPlanRequest(BaseModel):
    crop_id: str
    region: str
    soil_type: str
    land_size: float
    sowing_date: Optional[datetime] = None
    # Required only for crops outside the default catalog
    crop_name: Optional[str] = None
    growing_duration_days: Optional[int] = Field(default=None, gt=0)
    use_ai: bool = True


def get_token(authorization: Optional[str] = Header(None)) -> str:
    """Extract and validate Bearer token from Authorization header."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing token")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization header")
    token = parts[1]
    if verify_token(token) is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return token


@app.post("/login", response_model=LoginResponse)
def login(req: LoginRequest):
    """Login with username/password; returns JWT."""
    if not verify_user(req.username, req.password):
        raise HTTPException(status_code=401, detail="Invalid username or password")
    token = create_access_token(data={"sub": req.username})
    return LoginResponse(access_token=token)


@app.get("/regions")
def regions() -> List[str]:
    return available_regions()


@app.get("/soil-types")
def soil_types() -> List[str]:
    return available_soil_types()


@app.get("/crops", response_model=List[CropCatalogEntry])
def crops():
    """Built-in crop catalog."""
    return default_catalog()


@app.post("/recommend", response_model=RecommendResponse)
def recommend_crops(req: RecommendRequest, token: str = Depends(get_token)):
    """Rank catalog crops by rule-based suitability for the farm."""
    month = req.month or datetime.now().month
    catalog = req.catalog if req.catalog is not None else default_catalog()
    season = get_season(month)
    results = recommend(req.region, req.soil_type, req.land_size, catalog, month=month)
    return RecommendResponse(
        season=season,
        season_display=get_season_display_name(season),
        total_crops_evaluated=len(catalog),
        recommendations=results,
    )


@app.post("/classify", response_model=ClassifyResponse)
def classify_crops(req: ClassifyRequest, token: str = Depends(get_token)):
    """Rank the 22 profiled crops for a soil/weather measurement."""
    features = (req.nitrogen, req.phosphorus, req.potassium, req.temperature, req.humidity, req.ph, req.rainfall)
    if req.top_n is not None:
        predictions = classifier.top_n(*features, n=req.top_n)
    else:
        predictions = classifier.classify(*features)
    return ClassifyResponse(model_state=classifier.state.value, predictions=predictions)


@app.get("/soil-defaults")
def soil_defaults(soil_type: str = Query(..., description="Soil type, e.g. Loamy")):
    return {"soil_type": soil_type, **default_soil_values(soil_type)}


@app.get("/rainfall-estimate")
def rainfall_estimate(region: str = Query(..., description="Region, e.g. Punjab")):
    return {"region": region, "rainfall": estimated_rainfall(region)}


@app.get("/weather")
def get_weather(region: str = Query(..., description="Region or city name"), token: str = Depends(get_token)):
    """Current weather for a region (province names map to their main city)."""
    try:
        weather = fetch_current_weather(region)
    except WeatherError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"success": True, **weather.model_dump()}


@app.get("/suggested-features", response_model=FeatureSuggestion)
def suggested_features(
    region: str = Query("Punjab", description="Farm region"),
    soil_type: str = Query("Loamy", description="Farm soil type"),
    token: str = Depends(get_token),
):
    """
    Pre-fill a classifier measurement: soil defaults by soil type, rainfall by
    region and live temperature/humidity when the weather lookup succeeds.
    """
    defaults = ClassifyRequest()
    temperature, humidity = defaults.temperature, defaults.humidity
    weather_available = False
    try:
        weather = fetch_current_weather(region)
        temperature, humidity = weather.temperature, weather.humidity
        weather_available = True
    except WeatherError as e:
        logger.warning("Weather fetch failed for %s, using defaults: %s", region, e)

    soil = default_soil_values(soil_type)
    return FeatureSuggestion(
        region=region,
        soil_type=soil_type,
        nitrogen=soil["N"],
        phosphorus=soil["P"],
        potassium=soil["K"],
        temperature=temperature,
        humidity=humidity,
        ph=soil["pH"],
        rainfall=estimated_rainfall(region),
        weather_available=weather_available,
    )


@app.post("/farming-plan", response_model=FarmingPlan)
def create_farming_plan(req: FarmingPlanRequest, token: str = Depends(get_token)):
    """Dated activity schedule for a chosen crop, from the generator or the fixed plan."""
    crop = next((c for c in default_catalog() if c.id == req.crop_id), None)
    crop_name = req.crop_name or (crop.name if crop else None)
    duration = req.growing_duration_days or (crop.growing_duration_days if crop else None)
    if crop_name is None or duration is None:
        raise HTTPException(status_code=404, detail=f"Unknown crop '{req.crop_id}'")

    sowing = req.sowing_date or datetime.now()
    if not req.use_ai:
        return default_plan(req.crop_id, crop_name, duration, start_date=sowing)
    return PlanGenerator().generate_plan(
        crop_id=req.crop_id,
        crop_name=crop_name,
        growing_duration_days=duration,
        region=req.region,
        soil_type=req.soil_type,
        land_size=req.land_size,
        start_date=sowing,
    )


@app.get("/health")
def health():
    return {
        "status": "active",
        "model_state": classifier.state.value,
        "features": [
            "crop_recommendations",
            "crop_classification",
            "weather",
            "farming_plan",
        ],
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
