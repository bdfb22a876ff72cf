"""
Configuration management for the AssignAI backend.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent.parent

# Uploaded PDFs are kept here by path reference only
UPLOAD_FOLDER = os.getenv("ASSIGNAI_UPLOAD_DIR", str(BASE_DIR / "uploads"))

# API Configuration
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("ASSIGNAI_MODEL", "gpt-4o-mini")
PARSER_MODEL = os.getenv("ASSIGNAI_PARSER_MODEL", OPENAI_MODEL)

# Server configuration
HOST = os.getenv("ASSIGNAI_HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "9000"))
DEBUG = os.getenv("ASSIGNAI_DEBUG", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("ASSIGNAI_LOG_LEVEL", "INFO")

# Upload limits
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB
ALLOWED_MIME_TYPES = ['application/pdf']

# PDF extraction
MAX_PDF_PAGES = 10
PDF_EXTRACTION_TIMEOUT = 20.0

# Assignment parsing
PARSER_TEXT_LIMIT = 6000
PARSER_CACHE_PREFIX = 500
PARSER_TIMEOUT = 25.0
PARSER_MAX_TOKENS = 2000

# Caches
RESPONSE_CACHE_TTL = 2 * 60 * 60   # 2 hours
PARSE_CACHE_TTL = 24 * 60 * 60     # 24 hours
CACHE_MAX_ENTRIES = 1024


class Config:
    """Application configuration class."""

    def __init__(self):
        self.upload_folder = UPLOAD_FOLDER
        self.openai_api_key = OPENAI_API_KEY
        self.openai_model = OPENAI_MODEL
        self.parser_model = PARSER_MODEL
        self.max_upload_bytes = MAX_UPLOAD_BYTES
        self.max_pdf_pages = MAX_PDF_PAGES
        self.pdf_extraction_timeout = PDF_EXTRACTION_TIMEOUT

    def to_dict(self):
        return {
            "upload_folder": self.upload_folder,
            "openai_api_key": self.openai_api_key,
            "openai_model": self.openai_model,
            "parser_model": self.parser_model,
            "max_upload_bytes": self.max_upload_bytes,
            "max_pdf_pages": self.max_pdf_pages,
            "pdf_extraction_timeout": self.pdf_extraction_timeout,
        }

    def update(self, data: dict):
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)


# Global config instance
config = Config()
