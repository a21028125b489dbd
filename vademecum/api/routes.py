"""
Vademecum API Routes

Thin HTTP surface over VademecumEngine. Caller-input errors map to 400,
embedding backend failures on the query path map to 502.
"""

import logging
from typing import Any

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status

from vademecum.engine import DEFAULT_PAGE_LIMIT, VademecumEngine
from vademecum.rag.ingestion import DEFAULT_SOURCE
from vademecum.rag.retriever import DEFAULT_SEARCH_LIMIT, RetrievalError
from vademecum.security.input_validation import InvalidInputError, MedicationListRequest

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
NOT_FOUND_MESSAGE = "Medicamento no encontrado"

router = APIRouter(prefix="/api/v1/vademecum", tags=["Vademecum"])


def get_engine(request: Request) -> VademecumEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Vademecum engine not initialized",
        )
    return engine


def _bad_request(exc: InvalidInputError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _bad_gateway(exc: RetrievalError) -> HTTPException:
    logger.error("Retrieval failed: %s", exc)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


# ============================================
# Listing & Lookup
# ============================================


@router.get("/")
async def list_medications(
    request: Request, page: int = 1, limit: int = DEFAULT_PAGE_LIMIT
) -> dict[str, Any]:
    """List stored medications (paginated)."""
    engine = get_engine(request)
    try:
        result = await engine.list_medications(page, limit)
    except InvalidInputError as e:
        raise _bad_request(e) from e
    return result.to_dict()


@router.get("/search")
async def search_medications(
    request: Request, q: str = "", limit: int = DEFAULT_SEARCH_LIMIT
) -> dict[str, Any]:
    """Semantic search over medication content."""
    engine = get_engine(request)
    try:
        results = await engine.search(q, limit)
    except InvalidInputError as e:
        raise _bad_request(e) from e
    except RetrievalError as e:
        raise _bad_gateway(e) from e
    return {"results": [r.model_dump(mode="json") for r in results]}


@router.get("/medicamento/{nombre}")
async def get_medication(request: Request, nombre: str) -> dict[str, Any]:
    """Resolve one medication by generic/commercial name, else semantically."""
    engine = get_engine(request)
    try:
        result = await engine.get_medication(nombre)
    except InvalidInputError as e:
        raise _bad_request(e) from e
    except RetrievalError as e:
        raise _bad_gateway(e) from e
    if result is None:
        return {"found": False, "message": NOT_FOUND_MESSAGE}
    return {"found": True, "data": result.model_dump(mode="json")}


# ============================================
# Interactions & Context
# ============================================


@router.post("/check-interactions")
async def check_interactions(
    request: Request, body: MedicationListRequest
) -> dict[str, Any]:
    """Report declared interactions among the given medications."""
    engine = get_engine(request)
    try:
        interactions = await engine.check_interactions(body.medicamentos)
    except InvalidInputError as e:
        raise _bad_request(e) from e
    except RetrievalError as e:
        raise _bad_gateway(e) from e
    return {
        "has_interactions": len(interactions) > 0,
        "interactions": [i.model_dump() for i in interactions],
    }


@router.post("/context")
async def build_context(request: Request, body: MedicationListRequest) -> dict[str, Any]:
    """Build the medication grounding text for note generation."""
    engine = get_engine(request)
    try:
        context = await engine.build_context(body.medicamentos)
    except InvalidInputError as e:
        raise _bad_request(e) from e
    except RetrievalError as e:
        raise _bad_gateway(e) from e
    return {"context": context}


# ============================================
# Ingestion
# ============================================


@router.post("/ingest")
async def ingest_pdf(
    request: Request,
    file: UploadFile | None = File(None),
    fuente: str | None = Form(None),
) -> dict[str, Any]:
    """Ingest a drug-reference PDF."""
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="PDF file is required"
        )
    if file.content_type != PDF_CONTENT_TYPE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="File must be a PDF"
        )

    engine = get_engine(request)
    content = await file.read()
    result = await engine.ingest_pdf(content, fuente or DEFAULT_SOURCE)

    return {
        "success": True,
        "message": (
            f"Processed {result.processed} medications with {result.errors} errors"
        ),
        "processed": result.processed,
        "errors": result.errors,
    }
