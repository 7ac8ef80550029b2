"""
Main entry point for the citation graph system.

    python main.py backfill --limit 1000   # cron-friendly embedding backfill
    python main.py serve --port 5000       # HTTP API
"""

import argparse
import json
import sys

from citegraph.logging_config import Logger
from citegraph.validation_and_errors import CitationGraphError
from pipelines.pipeline_factory import PipelineFactory


logger = Logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Semantic search and citation graph")
    sub = parser.add_subparsers(dest="command", required=True)

    backfill = sub.add_parser("backfill", help="Embed corpus entities that have no embedding yet")
    backfill.add_argument("--limit", type=int, default=1000, help="Maximum entities to embed")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--debug", action="store_true")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    factory = PipelineFactory()

    if args.command == "backfill":
        try:
            count = factory.create_pipeline().backfill_embeddings(args.limit)
        except CitationGraphError as e:
            logger.error(f"Backfill failed: {e}", exc_info=True)
            return 1
        finally:
            factory.graph_store().close()
        print(json.dumps({"count": count}))
        return 0

    from server import create_app

    app = create_app(factory)
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


if __name__ == "__main__":
    sys.exit(main())
