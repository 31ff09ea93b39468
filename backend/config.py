"""
FasalPlanner - Runtime settings read from the environment.
Every value has an in-code default so the service starts without a .env file.
"""
import os

WEATHER_API_KEY = os.environ.get("WEATHER_API_KEY", "")
WEATHER_BASE_URL = os.environ.get(
    "WEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5/weather"
)
WEATHER_TIMEOUT_SECONDS = float(os.environ.get("WEATHER_TIMEOUT_SECONDS", "10"))

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL_URL = os.environ.get(
    "GEMINI_MODEL_URL",
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent",
)
GEMINI_TIMEOUT_SECONDS = float(os.environ.get("GEMINI_TIMEOUT_SECONDS", "30"))

JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "fasalplanner-dev-secret-change-in-production")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

API_USERNAME = os.environ.get("API_USERNAME", "farmer")
API_PASSWORD = os.environ.get("API_PASSWORD", "fasal2025")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Cosmetic model "loading" delay in seconds (0 disables it)
MODEL_LOAD_DELAY = float(os.environ.get("MODEL_LOAD_DELAY", "0.5"))
