"""
Event title/description generation. The template generator is
deterministic; the Gemini generator falls back to it on any failure, so
booking never depends on the LLM being reachable.
"""

import json
from dataclasses import dataclass
from datetime import date

import httpx

from .config import GEMINI_API_KEY, GEMINI_MODEL, GEMINI_API_URL, CALENDAR_HTTP_TIMEOUT, SERVICE_NAME


@dataclass(frozen=True)
class DetailsRequest:
    host_name: str
    guest_name: str
    guest_email: str
    topic: str
    date: date
    time: str


@dataclass(frozen=True)
class EventDetails:
    title: str
    description: str


class TemplateDetailsGenerator:
    async def generate_details(self, info: DetailsRequest) -> EventDetails:
        return EventDetails(
            title=f"Podcast Recording: {info.host_name} w/ {info.guest_name}",
            description=(
                f'Podcast recording session with {info.guest_name} ({info.guest_email}) '
                f'to discuss "{info.topic}".'
            ),
        )


def build_prompt(info: DetailsRequest) -> str:
    formatted_date = info.date.strftime("%A, %B %d, %Y")
    return f"""
You create calendar event details for a podcast recording session.
Generate a concise, friendly event title and a detailed event description.

Event information:
- Podcast Host: {info.host_name}
- Guest: {info.guest_name}
- Guest Email: {info.guest_email}
- Topic of Discussion: "{info.topic}"
- Date: {formatted_date}
- Time: {info.time}

Title format: "Podcast Recording: [Host Name] w/ [Guest Name]".
The description welcomes the guest, states the purpose and topic, repeats
date and time, gives a short agenda (pre-chat, recording, post-chat) and
closes on a positive note.

Return a single JSON object with the keys "title" and "description" only.
""".strip()


class GeminiDetailsGenerator:
    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_URL,
        timeout: float = CALENDAR_HTTP_TIMEOUT,
        fallback: TemplateDetailsGenerator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.fallback = fallback or TemplateDetailsGenerator()
        self._transport = transport

    async def _call(self, info: DetailsRequest) -> EventDetails:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": build_prompt(info)}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(url, json=payload, headers={"x-goog-api-key": self.api_key})
            resp.raise_for_status()
            data = resp.json()

        text = data["candidates"][0]["content"]["parts"][0]["text"].strip()
        parsed = json.loads(text)
        if not isinstance(parsed.get("title"), str) or not isinstance(parsed.get("description"), str):
            raise ValueError("Invalid JSON structure from Gemini API")
        return EventDetails(title=parsed["title"], description=parsed["description"])

    async def generate_details(self, info: DetailsRequest) -> EventDetails:
        try:
            return await self._call(info)
        except Exception as e:
            print(f"[{SERVICE_NAME}] event details generation failed; using template: {e}")
            return await self.fallback.generate_details(info)


def build_details_generator():
    if GEMINI_API_KEY:
        return GeminiDetailsGenerator(GEMINI_API_KEY)
    return TemplateDetailsGenerator()
