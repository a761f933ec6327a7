import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

APP_ENV = os.getenv("APP_ENV", os.getenv("NODE_ENV", "production")).lower()
IS_DEVELOPMENT = APP_ENV == "development"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]

# Brevo transactional email
BREVO_API_KEY = os.getenv("BREVO_API_KEY")
BREVO_SENDER_EMAIL = os.getenv("BREVO_SENDER_EMAIL", "support@amoriaglobal.com")
BREVO_SENDER_NAME = os.getenv("BREVO_SENDER_NAME", "Amoria Team")

# Zoho WorkDrive
ZOHO_CLIENT_ID = os.getenv("ZOHO_CLIENT_ID")
ZOHO_CLIENT_SECRET = os.getenv("ZOHO_CLIENT_SECRET")
ZOHO_REFRESH_TOKEN = os.getenv("ZOHO_REFRESH_TOKEN")
ZOHO_WORKDRIVE_ORG_ID = os.getenv("ZOHO_WORKDRIVE_ORG_ID")
ZOHO_DOCUMENTS_FOLDER_ID = os.getenv("ZOHO_DOCUMENTS_FOLDER_ID")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

# Marketplace backend consumed by the admin catalogue
BACKEND_API_URL = os.getenv("BACKEND_API_URL", "http://localhost:5000/api")
BACKEND_ACCESS_TOKEN = os.getenv("BACKEND_ACCESS_TOKEN")
BACKEND_REFRESH_TOKEN = os.getenv("BACKEND_REFRESH_TOKEN")
BACKEND_TIMEOUT_SECONDS = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "50"))

# List endpoints
DEFAULT_PAGE_LIMIT = 100
MAX_PAGE_LIMIT = 500
MAX_OVERVIEW_LIMIT = 1000

# OTP resend throttling
OTP_RESEND_WINDOW_MINUTES = 15
OTP_MAX_RESENDS = 3
OTP_EXPIRATION_MINUTES = 2
