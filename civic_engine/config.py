"""Runtime configuration, read from the environment."""
import os

APP_NAME = os.getenv("APP_NAME", "Civic Engine - Municipal Issue Reporting")

# Prefix the API router is mounted under
API_PREFIX = os.getenv("API_PREFIX", "/api")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# "text" for development, "json" for log aggregation in production
LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
