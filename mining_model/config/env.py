# mining_model/config/env.py
import os

# Environment constants to avoid typos in comparisons
ENV_DEV = "dev"
ENV_PROD = "prod"

# Simple env flag: "dev" for verbose local runs, defaulting to "prod"
APP_ENV = os.getenv("APP_ENV", ENV_PROD).lower()

# Log level for scripts; falls back to DEBUG in dev and INFO otherwise
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if APP_ENV == ENV_DEV else "INFO").upper()
