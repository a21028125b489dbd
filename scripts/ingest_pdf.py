#!/usr/bin/env python3
"""
Ingest one or more drug-reference PDFs into the vademecum store.

Run: python scripts/ingest_pdf.py vademecum.pdf --source "Vademecum 2026"

Prerequisites:
- PostgreSQL with pgvector (unless VADEMECUM_STORE=memory)
- The embedding backend selected by EMBEDDING_BACKEND
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vademecum.config import VademecumConfig  # noqa: E402
from vademecum.db.postgres import init_schema  # noqa: E402
from vademecum.engine import VademecumEngine  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def ingest(paths: list[Path], source: str | None, create_schema: bool) -> int:
    config = VademecumConfig.from_env()
    engine = VademecumEngine.from_config(config)
    failed = 0
    try:
        if create_schema and config.store_backend == "postgres":
            await init_schema(engine.store.engine)

        for path in paths:
            if not path.is_file():
                logger.error("File not found: %s", path)
                failed += 1
                continue
            result = await engine.ingest_pdf(path.read_bytes(), source or path.name)
            print(
                f"{path.name}: processed {result.processed} medications "
                f"with {result.errors} errors"
            )
            if result.errors:
                failed += 1
    finally:
        await engine.close()
    return 1 if failed else 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Ingest vademecum PDFs")
    ap.add_argument("pdfs", nargs="+", type=Path, help="PDF file(s) to ingest")
    ap.add_argument("--source", default=None, help="Provenance label (default: file name)")
    ap.add_argument(
        "--init-schema",
        action="store_true",
        help="Create the pgvector extension and tables before ingesting",
    )
    args = ap.parse_args()
    return asyncio.run(ingest(args.pdfs, args.source, args.init_schema))


if __name__ == "__main__":
    sys.exit(main())
