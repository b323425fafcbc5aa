"""Generate today's startup and optionally post it to Instagram."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from app.clients.instagram import InstagramClient
from app.clients.openai_chat import OpenAIChatCompletionClient
from app.config import Settings
from app.core.http import build_http_client
from app.services.errors import StartupDoseError
from app.services.generation.content_generator import StartupContentGenerator
from app.services.generation.cover_image import CoverImageConfig, CoverImageResolver
from app.services.generation.orchestrator import CompanyGenerationOrchestrator
from app.services.generation.repositories import SQLCompanyRepository, build_company_repository
from app.services.publishing.captions import build_caption
from app.services.publishing.instagram_publisher import InstagramPublisher

logger = logging.getLogger("scripts.generate_daily")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate and store the Startup Dose company of the day.")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL (falls back to .env).",
    )
    parser.add_argument(
        "--publish-instagram",
        action="store_true",
        help="Post the new company's cover image to Instagram after saving it.",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, config: Settings) -> int:
    repository = build_company_repository(args.database_url or config.database_url)
    http_client = build_http_client(config)
    try:
        try:
            orchestrator = CompanyGenerationOrchestrator(
                generator=StartupContentGenerator(
                    OpenAIChatCompletionClient(
                        config.openai_api_key,
                        timeout=config.openai_timeout_seconds,
                        http_client=http_client,
                    ),
                    model=config.openai_model,
                ),
                cover_images=CoverImageResolver(
                    CoverImageConfig.from_settings(config),
                    http_client=http_client,
                ),
                repository=repository,
            )
            record = await orchestrator.generate_and_store()
        except StartupDoseError as exc:
            logger.error("generate_daily.failed", extra={"code": exc.code, "error": str(exc)})
            return 1
        print(record.model_dump_json(indent=2))

        if args.publish_instagram:
            publisher = InstagramPublisher(
                InstagramClient(
                    config.instagram_user_id,
                    config.instagram_access_token,
                    http_client=http_client,
                    api_version=config.instagram_api_version,
                ),
                poll_interval_seconds=config.instagram_poll_interval_seconds,
                max_poll_attempts=config.instagram_max_poll_attempts,
            )
            caption = build_caption(record.name, record.description, record.appeal, record.website)
            result = await publisher.publish(record.cover_image, caption)
            print(json.dumps(result.model_dump(exclude_none=True)))
        return 0
    finally:
        await http_client.aclose()
        if isinstance(repository, SQLCompanyRepository):
            repository.dispose()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    return asyncio.run(run(args, Settings()))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
