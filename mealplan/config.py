import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Daily calorie target used when a profile lacks weight, height or age.
DEFAULT_CALORIE_TARGET = 2000

# Number of consecutive days in a generated plan.
DAYS_IN_PLAN = 7

# Plan generation scores every candidate for every slot, so the HTTP
# endpoint is rate limited per client. Uses Flask-Limiter syntax.
PLAN_RATE_LIMIT = os.environ.get("PLAN_RATE_LIMIT", "30 per minute")
RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
