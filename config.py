"""Application configuration via environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(".env.local")
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'monarch_applications.db'}")

# PDF template + generated output
TEMPLATE_PDF_PATH = Path(os.getenv("TEMPLATE_PDF_PATH", str(BASE_DIR / "templates" / "application_form.pdf")))
GENERATED_DIR = Path(os.getenv("GENERATED_DIR", str(BASE_DIR / "generated_pdfs")))

# Layout variant used when a request does not pick one ("compact" or "wide")
LAYOUT_VARIANT = os.getenv("LAYOUT_VARIANT", "compact")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8002"))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:8501,http://127.0.0.1:8501").split(",")

# Streamlit frontend -> backend
API_BASE_URL = os.getenv("API_BASE_URL", f"http://{HOST}:{PORT}")
