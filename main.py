"""
Monarch Residences application form service - FastAPI backend.

Sets up logging and CORS, includes the routes, initializes the DB and the
PDF filler.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import router
from config import CORS_ORIGINS, LOG_LEVEL
from db import init_db
from form_filler import init_pdf_filler

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and the PDF filler on startup."""
    init_db()
    init_pdf_filler()
    yield


app = FastAPI(
    title="Monarch Residences Application Forms",
    description="Collect application data and render it onto the printed form",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    from config import HOST, PORT

    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)
