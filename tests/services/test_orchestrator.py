import pytest

from app.models.company import GeneratedCompany
from app.services.errors import PersistenceError, UpstreamError
from app.services.generation.orchestrator import (
    CompanyGenerationOrchestrator,
    build_insert_fields,
)
from app.services.generation.repositories import InMemoryCompanyRepository


def _company(**overrides) -> GeneratedCompany:
    values = {
        "name": "Acme AI, Inc.",
        "website": "https://acme.ai",
        "cover_image": "https://acme.ai/founders.jpg",
        "description": "Acme builds agents for accountants.",
        "appeal": "<li>One</li>",
        "twitter": "https://x.com/acmeai",
    }
    values.update(overrides)
    return GeneratedCompany(**values)


class FakeGenerator:
    def __init__(self, company=None, error=None):
        self.company = company or _company()
        self.error = error

    async def generate(self):
        if self.error is not None:
            raise self.error
        return self.company


class FakeCoverImages:
    def __init__(self, url=None):
        self.url = url
        self.calls = []

    async def resolve(self, *, website, slug, fallback_url):
        self.calls.append({"website": website, "slug": slug, "fallback_url": fallback_url})
        return self.url or fallback_url


class FailingRepository(InMemoryCompanyRepository):
    def insert(self, fields):
        raise PersistenceError("Failed to persist company.")


def test_build_insert_fields_is_sparse():
    fields = build_insert_fields(_company(), slug="acme-ai-inc", cover_image="https://cdn/x.png")
    assert fields == {
        "name": "Acme AI, Inc.",
        "slug": "acme-ai-inc",
        "website": "acme.ai",
        "cover_image": "https://cdn/x.png",
        "description": "Acme builds agents for accountants.",
        "appeal": "<li>One</li>",
        "twitter": "https://x.com/acmeai",
    }


@pytest.mark.asyncio
async def test_generate_and_store_persists_hosted_cover(stub_metrics):
    repository = InMemoryCompanyRepository()
    cover_images = FakeCoverImages(url="https://bucket.s3.us-east-1.amazonaws.com/a.png")
    orchestrator = CompanyGenerationOrchestrator(
        generator=FakeGenerator(), cover_images=cover_images, repository=repository
    )

    record = await orchestrator.generate_and_store()

    assert cover_images.calls == [
        {
            "website": "https://acme.ai",
            "slug": "acme-ai-inc",
            "fallback_url": "https://acme.ai/founders.jpg",
        }
    ]
    assert record.slug == "acme-ai-inc"
    assert record.website == "acme.ai"
    assert record.cover_image == "https://bucket.s3.us-east-1.amazonaws.com/a.png"
    assert record.twitter == "https://x.com/acmeai"
    assert record.linkedin is None
    assert repository.get_latest() == record
    assert stub_metrics.counted("generation.success") == 1
    assert stub_metrics.timing_calls[-1]["tags"] == {"outcome": "success"}


@pytest.mark.asyncio
async def test_generate_and_store_keeps_suggested_cover_on_fallback(stub_metrics):
    orchestrator = CompanyGenerationOrchestrator(
        generator=FakeGenerator(),
        cover_images=FakeCoverImages(),
        repository=InMemoryCompanyRepository(),
    )
    record = await orchestrator.generate_and_store()
    assert record.cover_image == "https://acme.ai/founders.jpg"


@pytest.mark.asyncio
async def test_generation_failure_skips_cover_and_persistence(stub_metrics):
    repository = InMemoryCompanyRepository()
    cover_images = FakeCoverImages()
    orchestrator = CompanyGenerationOrchestrator(
        generator=FakeGenerator(error=UpstreamError("timeout", code="502_OPENAI_UPSTREAM")),
        cover_images=cover_images,
        repository=repository,
    )

    with pytest.raises(UpstreamError):
        await orchestrator.generate_and_store()

    assert cover_images.calls == []
    assert stub_metrics.increment_calls[-1]["tags"] == {"code": "502_OPENAI_UPSTREAM"}
    assert stub_metrics.timing_calls[-1]["tags"] == {"outcome": "502_OPENAI_UPSTREAM"}


@pytest.mark.asyncio
async def test_name_without_slug_characters_is_rejected(stub_metrics):
    cover_images = FakeCoverImages()
    orchestrator = CompanyGenerationOrchestrator(
        generator=FakeGenerator(company=_company(name="???")),
        cover_images=cover_images,
        repository=InMemoryCompanyRepository(),
    )

    with pytest.raises(UpstreamError) as excinfo:
        await orchestrator.generate_and_store()

    assert excinfo.value.code == "502_INVALID_COMPLETION"
    assert cover_images.calls == []


@pytest.mark.asyncio
async def test_persistence_failure_propagates(stub_metrics):
    orchestrator = CompanyGenerationOrchestrator(
        generator=FakeGenerator(),
        cover_images=FakeCoverImages(),
        repository=FailingRepository(),
    )

    with pytest.raises(PersistenceError):
        await orchestrator.generate_and_store()
    assert stub_metrics.counted("generation.success") == 0
    assert stub_metrics.counted("generation.errors") == 1
