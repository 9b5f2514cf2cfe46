"""Command-line entry point: ``vsearch ingest | query | import``."""

from __future__ import annotations

import argparse
import logging
import sys

from vsearch.config import IngestionSettings, Settings
from vsearch.exceptions import VsearchError
from vsearch.store import CASES_PARTITION, PROGRESS_PARTITION, KeySpace, ProgressTracker

logger = logging.getLogger("vsearch")

_NOISY_LOGGERS = ("sentence_transformers", "httpx", "chromadb", "urllib3")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _build_index(settings: Settings):  # noqa: ANN202
    from vsearch.retrieval.chroma_store import ChromaVectorIndex

    return ChromaVectorIndex(
        settings.collection_name,
        host=settings.chroma_host,
        port=settings.chroma_port,
        distance_metric=settings.distance_metric,
    )


def _build_embedder(settings: Settings):  # noqa: ANN202
    from vsearch.ingestion.embedder import HuggingFaceEmbedder

    return HuggingFaceEmbedder(settings.embedding_model, batch_size=settings.batch_size)


def cmd_ingest(settings: Settings, args: argparse.Namespace) -> int:
    from vsearch.ingestion.pipeline import IngestionLoop

    overrides = {}
    if args.progress is not None:
        overrides["progress"] = args.progress
    if args.batch_size is not None:
        overrides["batch_size"] = args.batch_size
    if args.per_chunk:
        overrides["aggregate_chunks"] = False
    ingestion = IngestionSettings.model_validate({**settings.ingestion().model_dump(), **overrides})

    with KeySpace(settings.db_path) as ks:
        loop = IngestionLoop(
            ks.open_partition(CASES_PARTITION),
            ProgressTracker(ks.open_partition(PROGRESS_PARTITION)),
            _build_embedder(settings),
            _build_index(settings),
            ingestion,
        )
        stats = loop.run()
    logger.info("Ingested %d cases, last checkpoint %s", stats.cases_indexed, stats.last_committed)
    return 0


def cmd_query(settings: Settings, args: argparse.Namespace) -> int:
    from vsearch.retrieval.searcher import CaseSearcher

    with KeySpace(settings.db_path) as ks:
        searcher = CaseSearcher(
            _build_index(settings),
            _build_embedder(settings),
            cases=ks.open_partition(CASES_PARTITION),
        )
        for hit in searcher.search(args.text, k=args.k):
            print(hit)
    return 0


def cmd_import(settings: Settings, args: argparse.Namespace) -> int:
    from vsearch.ingestion.loader import import_cases

    with KeySpace(settings.db_path) as ks:
        import_cases(ks.open_partition(CASES_PARTITION), args.file)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vsearch", description="Legal case vector search")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Embed stored cases into the vector index")
    ingest.add_argument("--progress", type=int, help="Resume after this case id (overrides the checkpoint)")
    ingest.add_argument("--batch-size", type=int, help="Single-chunk cases per embedding call")
    ingest.add_argument("--per-chunk", action="store_true", help="Index each chunk of long cases separately")
    ingest.set_defaults(func=cmd_ingest)

    query = sub.add_parser("query", help="Search the index with free text")
    query.add_argument("text", help="Query text")
    query.add_argument("-k", type=int, default=30, help="Number of results")
    query.set_defaults(func=cmd_query)

    imp = sub.add_parser("import", help="Load cases from a JSON-Lines file into the store")
    imp.add_argument("file", help="JSON-Lines file of case records")
    imp.set_defaults(func=cmd_import)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        settings = Settings()
        return args.func(settings, args)
    except VsearchError as exc:
        logger.error("Fatal: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
