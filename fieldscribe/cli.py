"""CLI for Fieldscribe — initialize storage, load the legal corpus, run pipelines."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml


async def cmd_init_db(args):
    from fieldscribe.db.engine import create_all

    await create_all()
    print("Database tables created.")


async def cmd_ingest_legal(args):
    """Embed and store legal documents from a YAML list of {title, content, source}."""
    from fieldscribe.agents.llm_provider import get_embedding_provider
    from fieldscribe.config import get_settings
    from fieldscribe.db import crud
    from fieldscribe.db.engine import async_session_factory, create_all

    path = Path(args.path)
    if not path.exists():
        print(f"File not found: {path}")
        sys.exit(1)
    with open(path, encoding="utf-8") as f:
        entries = yaml.safe_load(f) or []
    if isinstance(entries, dict):
        entries = entries.get("documents", [])

    settings = get_settings()
    embedder = get_embedding_provider(settings)
    if embedder is None:
        print("WARNING: OPENAI_API_KEY not set; documents are stored without embeddings "
              "and only reachable through keyword search.")

    await create_all()
    stored = 0
    async with async_session_factory() as db:
        for entry in entries:
            content = (entry.get("content") or "").strip() if isinstance(entry, dict) else ""
            if not content:
                continue
            embedding = await embedder.embed(content) if embedder else None
            doc = await crud.create_legal_document(
                db, content,
                title=entry.get("title", ""),
                source=entry.get("source", ""),
                embedding=embedding,
            )
            stored += 1
            print(f"  Stored {doc.title or doc.id}")
    print(f"Ingested {stored} legal documents.")


async def cmd_transcribe(args):
    from fieldscribe.agents.llm_provider import get_llm_provider, get_embedding_provider
    from fieldscribe.agents.orchestrator import run_assessment_pipeline
    from fieldscribe.config import get_settings
    from fieldscribe.db.engine import async_session_factory
    from fieldscribe.services.retry import RetryPolicy
    from fieldscribe.services.stt import DeepgramTranscriber

    settings = get_settings()
    if not settings.deepgram_api_key:
        print("DEEPGRAM_API_KEY is not set")
        sys.exit(1)

    async with async_session_factory() as db:
        message = await run_assessment_pipeline(
            args.assessment_id, args.audio_url,
            db=db,
            stt=DeepgramTranscriber(settings.deepgram_api_key, settings.stt),
            llm=get_llm_provider(settings),
            embedder=get_embedding_provider(settings),
            retry=RetryPolicy.from_config(settings.retry),
            settings=settings,
        )
    print(message)


async def cmd_structure_template(args):
    from fieldscribe.agents.llm_provider import get_llm_provider
    from fieldscribe.agents.orchestrator import run_template_pipeline
    from fieldscribe.config import get_settings
    from fieldscribe.db.engine import async_session_factory
    from fieldscribe.services.retry import RetryPolicy

    settings = get_settings()
    image = Path(args.image).read_bytes() if args.image else None
    async with async_session_factory() as db:
        result = await run_template_pipeline(
            args.template_id,
            db=db,
            llm=get_llm_provider(settings),
            retry=RetryPolicy.from_config(settings.retry),
            settings=settings,
            image=image,
        )
    print(f"Template structured: {result['items']} items, type={result['document_type']}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(description="Fieldscribe CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create database tables")

    il = subparsers.add_parser("ingest-legal", help="Embed and store legal documents from YAML")
    il.add_argument("path", help="YAML file with a list of {title, content, source}")

    tr = subparsers.add_parser("transcribe", help="Run the assessment pipeline")
    tr.add_argument("--assessment-id", required=True)
    tr.add_argument("--audio-url", required=True, help="Public URL or bucket path of the recording")

    st = subparsers.add_parser("structure-template", help="Structure a template from its image")
    st.add_argument("--template-id", required=True)
    st.add_argument("--image", default="", help="Local image file (defaults to the template's stored image)")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "ingest-legal":
        asyncio.run(cmd_ingest_legal(args))
    elif args.command == "transcribe":
        asyncio.run(cmd_transcribe(args))
    elif args.command == "structure-template":
        asyncio.run(cmd_structure_template(args))


if __name__ == "__main__":
    main()
