# config.py
"""
Application configuration loaded from the environment.

Values come from the process environment, optionally seeded from a local
.env file. Everything is read once at import time.
"""
import os
from urllib.parse import quote_plus

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Database
DB_SERVER = os.getenv("DB_SERVER")
DB_PORT = os.getenv("DB_PORT", "1433")
DB_USER = os.getenv("DB_USER")
DB_PASS = os.getenv("DB_PASS")
DB_NAME = os.getenv("DB_NAME")


def _build_database_url() -> str:
     """
     Resolve the SQLAlchemy URL.

     DATABASE_URL wins when set. Otherwise an Azure SQL (MS SQL Server) URL is
     built from the DB_* variables, and without those a local SQLite file is used.
     """
     explicit = os.getenv("DATABASE_URL")
     if explicit:
          return explicit
     if DB_SERVER:
          safe_user = quote_plus(DB_USER or "")
          safe_pass = quote_plus(DB_PASS or "")
          return f"mssql+pymssql://{safe_user}:{safe_pass}@{DB_SERVER}:{DB_PORT}/{DB_NAME}"
     return "sqlite:///./billing.db"


DATABASE_URL = _build_database_url()
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Email (Brevo transactional API)
BREVO_API_KEY = os.getenv("BREVO_API_KEY")
BREVO_API_URL = os.getenv("BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
EMAIL_FROM = os.getenv("EMAIL_FROM", "Netspire Billing <billing@netspire.com>")

# Company block printed on invoices and emails
COMPANY_NAME = os.getenv("COMPANY_NAME", "Netspire")
COMPANY_ADDRESS = [
     line.strip()
     for line in os.getenv(
          "COMPANY_ADDRESS",
          "123 Business Street|Suite 100|Your City, State 12345|Phone: (555) 123-4567|billing@netspire.com",
     ).split("|")
     if line.strip()
]

# Object storage for generated PDFs
AZURE_STORAGE_ACCOUNT = os.getenv("AZURE_STORAGE_ACCOUNT")
AZURE_STORAGE_KEY = os.getenv("AZURE_STORAGE_KEY")
AZURE_STORAGE_CONTAINER = os.getenv("AZURE_STORAGE_CONTAINER", "billing")

# HTTP
CORS_ORIGINS = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Payment statuses that count towards an invoice's paid amount
COUNTED_PAYMENT_STATUSES = [
     s.strip()
     for s in os.getenv("COUNTED_PAYMENT_STATUSES", "pending,completed,failed,refunded").split(",")
     if s.strip()
]
