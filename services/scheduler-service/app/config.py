import json
import os

SERVICE_NAME = "scheduler-service"

DEFAULT_HOSTS = [
    {"id": "1", "name": "Alice", "email": "alice@example.com"},
    {"id": "2", "name": "Bob", "email": "bob@example.com"},
    {"id": "3", "name": "Charlie", "email": "charlie@example.com"},
    {"id": "4", "name": "Diana", "email": "diana@example.com"},
]

# Ordered host list; order is the round-robin order.
HOSTS_JSON = os.getenv("HOSTS_JSON")

WORKDAY_START_HOUR = int(os.getenv("WORKDAY_START_HOUR") or "9")
WORKDAY_END_HOUR = int(os.getenv("WORKDAY_END_HOUR") or "17")
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES") or "60")

CALENDAR_PROVIDER = (os.getenv("CALENDAR_PROVIDER") or "google").strip().lower()
GOOGLE_CALENDAR_API_URL = os.getenv("GOOGLE_CALENDAR_API_URL") or "https://www.googleapis.com/calendar/v3"
CALENDAR_HTTP_TIMEOUT = float(os.getenv("CALENDAR_HTTP_TIMEOUT") or "5.0")
PROVIDER_CALL_TIMEOUT = float(os.getenv("PROVIDER_CALL_TIMEOUT") or "8.0")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL") or "gemini-2.5-flash"
GEMINI_API_URL = os.getenv("GEMINI_API_URL") or "https://generativelanguage.googleapis.com/v1beta"

BOOKINGS_DB = os.getenv("BOOKINGS_DB")  # optional; in-memory booking log when unset
REDIS_URL = os.getenv("REDIS_URL")  # optional; in-memory round-robin cursor when unset
RABBIT_URL = os.getenv("RABBIT_URL")  # optional; domain events disabled when unset


def load_hosts() -> list[dict]:
    if not HOSTS_JSON:
        return [dict(h) for h in DEFAULT_HOSTS]
    try:
        hosts = json.loads(HOSTS_JSON)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"HOSTS_JSON is not valid JSON: {e}")
    if not isinstance(hosts, list):
        raise RuntimeError("HOSTS_JSON must be a JSON list of hosts")
    return hosts
