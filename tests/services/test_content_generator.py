import json
import logging

import pytest

from app.services.errors import UpstreamError
from app.services.generation.content_generator import (
    STARTUP_DOSE_PROMPT,
    StartupContentGenerator,
)

FIVE_ITEMS = "".join(f"<li>Reason {idx}</li>" for idx in range(1, 6))


def _payload(**overrides):
    payload = {
        "name": "Acme AI",
        "website": "https://acme.ai",
        "cover_image": "https://acme.ai/founders.jpg",
        "description": "Acme builds agents for accountants.",
        "appeal": FIVE_ITEMS,
        "linkedin": "https://linkedin.com/company/acme-ai",
        "instagram": "",
        "facebook": None,
        "twitter": "",
    }
    payload.update(overrides)
    return payload


class FakeCompletionClient:
    def __init__(self, content: str) -> None:
        self.content = content
        self.calls: list[dict[str, str]] = []

    async def complete(self, *, prompt: str, model: str) -> str:
        self.calls.append({"prompt": prompt, "model": model})
        return self.content


@pytest.mark.asyncio
async def test_generate_sends_prompt_and_parses_company():
    client = FakeCompletionClient(json.dumps(_payload()))
    generator = StartupContentGenerator(client, model="gpt-4o-mini")

    company = await generator.generate()

    assert client.calls == [{"prompt": STARTUP_DOSE_PROMPT, "model": "gpt-4o-mini"}]
    assert company.name == "Acme AI"
    assert company.appeal == FIVE_ITEMS
    assert company.facebook == ""
    assert company.social_links() == {"linkedin": "https://linkedin.com/company/acme-ai"}


@pytest.mark.asyncio
async def test_generate_tolerates_code_fences():
    fenced = "```json\n" + json.dumps(_payload()) + "\n```"
    company = await StartupContentGenerator(FakeCompletionClient(fenced), model="m").generate()
    assert company.website == "https://acme.ai"


@pytest.mark.asyncio
async def test_generate_extracts_object_from_prose():
    wrapped = "Here is today's pick: " + json.dumps(_payload()) + " Enjoy!"
    company = await StartupContentGenerator(FakeCompletionClient(wrapped), model="m").generate()
    assert company.name == "Acme AI"


@pytest.mark.asyncio
async def test_generate_strips_list_wrapper_from_appeal():
    client = FakeCompletionClient(json.dumps(_payload(appeal=f"<ul>{FIVE_ITEMS}</ul>")))
    company = await StartupContentGenerator(client, model="m").generate()
    assert company.appeal == FIVE_ITEMS


@pytest.mark.asyncio
async def test_generate_accepts_wrong_item_count_with_warning(caplog):
    client = FakeCompletionClient(json.dumps(_payload(appeal="<li>Only one</li>")))
    with caplog.at_level(logging.WARNING):
        company = await StartupContentGenerator(client, model="m").generate()
    assert company.appeal == "<li>Only one</li>"
    assert any(record.message == "generation.appeal.unexpected_count" for record in caplog.records)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "not json at all",
        "[1, 2, 3]",
        json.dumps({"website": "https://acme.ai"}),
        json.dumps(_payload(name="")),
    ],
)
async def test_generate_rejects_malformed_completions(content):
    generator = StartupContentGenerator(FakeCompletionClient(content), model="m")
    with pytest.raises(UpstreamError) as excinfo:
        await generator.generate()
    assert excinfo.value.code == "502_INVALID_COMPLETION"


@pytest.mark.asyncio
async def test_generate_propagates_client_errors():
    class FailingClient:
        async def complete(self, *, prompt: str, model: str) -> str:
            raise UpstreamError("OpenAI API returned status 500", code="502_OPENAI_UPSTREAM")

    with pytest.raises(UpstreamError) as excinfo:
        await StartupContentGenerator(FailingClient(), model="m").generate()
    assert excinfo.value.code == "502_OPENAI_UPSTREAM"
