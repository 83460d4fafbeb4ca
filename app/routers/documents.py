from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from app.auth import get_current_user
from app.config import MAX_UPLOAD_BYTES
from app.middleware.rate_limit import general_api_limit
from app.services.content_analyzer import ContentAnalyzer
from app.services.extraction import DocumentError, extract_document_text


router = APIRouter(prefix="/api/documents", tags=["documents"])

PREVIEW_CHARS = 500


async def read_upload(file: UploadFile) -> bytes:
    # One byte past the limit is enough to tell an oversized upload apart
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail=f"File too large (max {MAX_UPLOAD_BYTES // (1024 * 1024)} MB)")
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return data


def _extract_and_analyze(filename: str, data: bytes):
    text = extract_document_text(filename, data)
    return text, ContentAnalyzer().analyze(text)


@router.post("/extract-text")
@general_api_limit()
async def extract_text(request: Request, file: UploadFile = File(...), user: dict = Depends(get_current_user)):
    data = await read_upload(file)
    try:
        text, analysis = await run_in_threadpool(_extract_and_analyze, file.filename, data)
    except DocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    preview = text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")
    return {
        "success": True,
        "message": "Text extracted successfully",
        "data": {
            "filename": file.filename,
            "text_length": len(text),
            "sentence_count": len(analysis.sentences),
            "keyword_count": len(analysis.keywords),
            "concept_count": len(analysis.concepts),
            "top_keywords": analysis.keywords[:10],
            "preview": preview,
        },
    }
