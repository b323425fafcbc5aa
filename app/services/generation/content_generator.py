"""Generates the startup of the day from a chat-completion model."""

from __future__ import annotations

import json
import logging
from typing import Any, Final, Protocol

from pydantic import ValidationError

from app.models.company import GeneratedCompany
from app.services.errors import UpstreamError
from app.services.generation.text import count_list_items, strip_list_container

logger = logging.getLogger(__name__)

PROMPT_VERSION: Final[str] = "startup-dose.v1"
EXPECTED_APPEAL_ITEMS: Final[int] = 5

STARTUP_DOSE_PROMPT: Final[str] = """You are the content curator for Startup Dose, a site that spotlights one promising tech startup per day.

Your task:

* Pick ONE tech startup that is:
  * In the technology space (software, hardware, SaaS, AI, dev tools, fintech, etc.).
  * NOT big or famous (avoid any company that is a household name or widely covered like Stripe, Airbnb, Dropbox, OpenAI, Meta, Google, etc.).
  * STILL ACTIVE (based on your knowledge; avoid companies that are clearly shut down, defunct, or discontinued).
  * Interesting enough to feature in a daily startup spotlight.

Use your knowledge of tech startups from news, blogs, databases, and other media in your training data. Prefer a startup where you know:

* The company website.
* At least one good image URL.

Return your answer as a SINGLE JSON object with the following fields:

* "name": string

  The name of the startup (company name), e.g. "Acme AI".
* "website": string

  The main website URL for the startup, e.g. "https://example.com".
* "cover_image": string

  A URL to a good image that we can use later in a social media post. **CRITICAL: Only provide image URLs that you are highly confident actually exist and are publicly accessible.** Do not guess or construct URLs that seem plausible but may not exist.

  Prefer, in this order:
  1. A photo featuring one or more founders, OR
  2. A strong, descriptive product/brand image related to what the company does.
     If you cannot confidently provide (1) or (2), then:
  3. Use a clear logo image from the company's own website (e.g. a logo or brand asset image), and if that is not available,
  4. Use a suitable profile or header image from one of the company's social media accounts (LinkedIn, Instagram, Facebook, or Twitter/X).

  Use a direct image URL (ending in .jpg, .jpeg, .png, .webp, or similar) if possible. **If you cannot provide a verified, working image URL, use the company's website homepage URL as a fallback.**
* "description": string

  A single short paragraph (2-4 sentences) describing:
  * What the company does,
  * Who it is for,
  * Why it's interesting.

    This paragraph should be written so it can be reused almost directly as social media caption text.
* "appeal": string

  EXACTLY five HTML list items (<li>...</li>) explaining why we like this startup. DO NOT wrap them in a <ul> tag.

  Example shape (just for structure, NOT content):

  "<li>Reason 1...</li>
<li>Reason 2...</li>
<li>Reason 3...</li>
<li>Reason 4...</li>
<li>Reason 5...</li>"

* Each bullet should be specific and compelling (traction, innovation, niche, team, product quality, etc.), written in a tone suitable for social media.
* "linkedin": string

  The company's LinkedIn page URL IF you are reasonably confident it exists and you know it.

  If you are not reasonably sure, set this to an empty string "".
* "instagram": string

  The company's Instagram profile URL IF you are reasonably confident it exists and you know it.

  Otherwise, "".
* "facebook": string

  The company's Facebook page URL IF you are reasonably confident it exists and you know it.

  Otherwise, "".
* "twitter": string

  The company's Twitter/X profile URL IF you are reasonably confident it exists and you know it.

  Otherwise, "".

Important formatting rules:

* Output MUST be valid JSON.
* Do NOT wrap the JSON in backticks or any other formatting.
* Do NOT add any extra commentary or explanation outside of the JSON.
* Exactly one startup per response.
* Make sure the "appeal" field is a single string containing exactly five <li> items WITHOUT any <ul> wrapper.

Now select an appropriate, lesser-known, still-active tech startup and return the JSON object."""


class ChatCompletionClient(Protocol):
    """Minimal contract for a chat-completion provider."""

    async def complete(self, *, prompt: str, model: str) -> str:
        ...


class StartupContentGenerator:
    """Asks the completion model for one company and validates the payload."""

    def __init__(
        self,
        client: ChatCompletionClient,
        *,
        model: str,
        prompt: str = STARTUP_DOSE_PROMPT,
    ) -> None:
        self._client = client
        self._model = model
        self._prompt = prompt

    async def generate(self) -> GeneratedCompany:
        content = await self._client.complete(prompt=self._prompt, model=self._model)
        logger.debug("generation.completion.raw", extra={"content": content})

        try:
            company = GeneratedCompany.model_validate(_parse_json_payload(content))
        except (ValueError, ValidationError) as exc:
            logger.error(
                "generation.parse_error",
                extra={"prompt_version": PROMPT_VERSION, "model": self._model},
            )
            raise UpstreamError(
                "Failed to parse company JSON from completion.",
                code="502_INVALID_COMPLETION",
            ) from exc

        company.appeal = strip_list_container(company.appeal)
        items = count_list_items(company.appeal)
        if items != EXPECTED_APPEAL_ITEMS:
            logger.warning(
                "generation.appeal.unexpected_count",
                extra={"expected": EXPECTED_APPEAL_ITEMS, "actual": items, "company": company.name},
            )
        logger.info(
            "generation.completion.parsed",
            extra={"company": company.name, "prompt_version": PROMPT_VERSION, "model": self._model},
        )
        return company


def _parse_json_payload(raw_text: str) -> dict[str, Any]:
    """Best-effort JSON decoding that tolerates code fences or prose."""
    candidate = raw_text.strip()
    if candidate.startswith("```"):
        candidate = "\n".join(
            line for line in candidate.splitlines() if not line.strip().startswith("```")
        ).strip()
    if not (candidate.startswith("{") and candidate.endswith("}")):
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("Response did not contain JSON object.")
        candidate = candidate[start : end + 1]
    payload = json.loads(candidate)
    if not isinstance(payload, dict):
        raise ValueError("Response JSON must be an object.")
    return payload
