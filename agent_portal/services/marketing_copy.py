"""Listing marketing copy using Gemini, with a template fallback."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import google.generativeai as genai

from ..models.listings import NormalizedProperty
from ..utils.logging import get_logger

LOGGER = get_logger("services.marketing_copy")

CHANNELS = {
    "listing": "an MLS listing description of 120-180 words",
    "social": "a social media caption under 60 words with at most three hashtags",
    "email": "a short email announcement of 80-120 words with a subject line",
}
TONES = ("professional", "warm", "luxury", "energetic")

COPY_PROMPT = """You are a real estate marketing copywriter for a brokerage in Texas.
Write {channel_desc} for the property below in a {tone} tone.
Use ONLY the facts in the JSON. Do not invent features, schools, or amenities.
Do not mention price per square foot or days on market. Follow fair housing rules:
no language about the kind of people who should live there.

Property JSON:
```json
{property_json}
```
Return plain text only."""


def _fmt_price(value: Optional[float]) -> str:
    if not value:
        return ""
    return f"${value:,.0f}"


def _fmt_count(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


class ListingCopywriter:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None) -> None:
        preferred = model or "gemini-2.5-flash"
        self.model_name = preferred.split("/", 1)[-1] if preferred.startswith("models/") else preferred
        self._model = None
        if api_key:
            try:
                genai.configure(api_key=api_key)
                self._model = genai.GenerativeModel(self.model_name)
            except Exception as exc:
                LOGGER.warning("Failed to initialise Gemini client: %s", exc)
                self._model = None

    @property
    def enabled(self) -> bool:
        return self._model is not None

    def generate_listing_copy(
        self,
        prop: NormalizedProperty,
        tone: str = "professional",
        channel: str = "listing",
    ) -> Dict[str, str]:
        channel = channel if channel in CHANNELS else "listing"
        tone = tone if tone in TONES else "professional"
        if not self._model:
            return {"text": self._fallback_copy(prop, channel), "source": "template"}

        facts = prop.model_dump(by_alias=True, exclude={"photos", "days_on_market"}, exclude_none=True)
        prompt = COPY_PROMPT.format(
            channel_desc=CHANNELS[channel],
            tone=tone,
            property_json=json.dumps(facts, indent=2),
        )
        try:
            response = self._model.generate_content(prompt, generation_config={"temperature": 0.6})
            text = self._extract_text(response).strip()
            if not text:
                raise ValueError("Empty response from Gemini")
            return {"text": text, "source": "gemini"}
        except Exception as exc:
            LOGGER.warning("Gemini listing copy failed mls=%s error=%s", prop.mls_number, exc)
            return {"text": self._fallback_copy(prop, channel), "source": "template"}

    def _fallback_copy(self, prop: NormalizedProperty, channel: str) -> str:
        where = prop.subdivision or prop.city or "Central Texas"
        layout = []
        if prop.beds:
            layout.append(f"{_fmt_count(prop.beds)} bed")
        if prop.baths:
            layout.append(f"{_fmt_count(prop.baths)} bath")
        if prop.sqft:
            layout.append(f"{int(prop.sqft):,} sq ft")
        summary = ", ".join(layout)
        price = _fmt_price(prop.list_price)
        kind = (prop.property_type or "home").lower()
        address = prop.street_address or prop.address

        if channel == "social":
            line = f"Just listed in {where}: {address}."
            if summary:
                line += f" {summary}."
            if price:
                line += f" Offered at {price}."
            return f"{line} #JustListed #{(prop.city or 'Austin').replace(' ', '')}RealEstate"

        lines = []
        if channel == "email":
            lines.append(f"Subject: New listing at {address}")
        opening = f"Welcome to {address}, a {kind} in {where}"
        lines.append(f"{opening} with {summary}." if summary else f"{opening}.")
        extras = []
        if prop.year_built:
            extras.append(f"built in {prop.year_built}")
        if prop.lot_size_acres:
            extras.append(f"set on {prop.lot_size_acres:g} acres")
        if extras:
            lines.append(f"The property was {' and '.join(extras)}.")
        if price:
            lines.append(f"Offered at {price}.")
        lines.append("Schedule a private showing today.")
        return "\n".join(lines) if channel == "email" else " ".join(lines)

    def _extract_text(self, response: Any) -> str:
        if hasattr(response, "text") and response.text:
            return response.text
        if hasattr(response, "candidates"):
            for candidate in response.candidates:
                if candidate.content.parts:
                    return "".join(part.text for part in candidate.content.parts if getattr(part, "text", None))
        raise ValueError("Empty response from Gemini")


__all__ = ["ListingCopywriter", "CHANNELS", "TONES"]
