from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Optional
import base64
import uvicorn

from src.infrastructure.document_source import FileSystemDocumentSource
from src.infrastructure.page_renderer import PyMuPdfPageRenderer
from src.application.search_service import FuzzySearchService
from src.domain.errors import CorpusUnavailableError, SearchCancelledError
from src.domain.models import SearchResult

# ── Configuration ────────────────────────────────────────────────────────────
# Root key → directory. Keys prefix every result path.
SEARCH_DIRECTORIES = {
    "invoices": "invoices",
}
MAX_WORKERS = 4
SEARCH_TIMEOUT_SECONDS = 120.0
PORT = 5002

# ── API Models ───────────────────────────────────────────────────────────────
class SearchRequest(BaseModel):
    query: Optional[str] = None

class SearchResultSchema(BaseModel):
    path: str
    date: str
    snippet: str
    preview: Optional[str] = None   # PNG data URL
    matchPage: int
    matchPages: List[int]
    pageCount: int

class SearchResponse(BaseModel):
    query: str
    results: List[SearchResultSchema]

# ── App Initialization ───────────────────────────────────────────────────────
app = FastAPI(
    title="Fuzzy Document Search API",
    description="Typo-tolerant text search with page previews over a document corpus.",
    version="1.0.0"
)

# ── CORS Middleware ──────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize infrastructure (global scope for singleton behavior)
document_source = FileSystemDocumentSource(roots=SEARCH_DIRECTORIES)
search_service = FuzzySearchService(
    document_source=document_source,
    page_renderer=PyMuPdfPageRenderer(),
    max_workers=MAX_WORKERS,
    timeout=SEARCH_TIMEOUT_SECONDS,
)

def _to_schema(result: SearchResult) -> SearchResultSchema:
    preview = None
    if result.preview_image:
        preview = "data:image/png;base64," + base64.b64encode(result.preview_image).decode("ascii")

    return SearchResultSchema(
        path=result.document_id,
        date=result.modified_at.isoformat(),
        snippet=result.snippet,
        preview=preview,
        matchPage=result.primary_page,
        matchPages=list(result.matched_pages),
        pageCount=result.page_count,
    )

# ── Endpoints ────────────────────────────────────────────────────────────────
@app.get("/")
def read_root():
    return {
        "message": "Fuzzy document search API is running.",
        "roots": document_source.roots,
    }

@app.post("/api/search", response_model=SearchResponse)
def search(request: SearchRequest):
    query = (request.query or "").strip()
    print(f"[API] Received search request for: \"{query}\"")

    if not query:
        raise HTTPException(status_code=400, detail="Query is required")

    try:
        results = search_service.search(query)
    except CorpusUnavailableError as e:
        print(f"[API] Corpus unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except SearchCancelledError as e:
        print(f"[API] Search aborted: {e}")
        raise HTTPException(status_code=504, detail=str(e))
    except Exception as e:
        print(f"[API] Search error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return SearchResponse(
        query=query,
        results=[_to_schema(r) for r in results]
    )

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)
