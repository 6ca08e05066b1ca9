import logging
import os

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "prompt_gallery")

ADMIN_SECRET = os.getenv("ADMIN_SECRET")

FRONTEND_URL = os.getenv("FRONTEND_URL")

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")
CLOUDINARY_FOLDER = os.getenv("CLOUDINARY_FOLDER", "prompt-app")

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_BYTES = 50 * 1024 * 1024

PORT = int(os.getenv("PORT", 8000))
APP_ENV = os.getenv("APP_ENV", "development")
IS_PRODUCTION = APP_ENV == "production"

SITE_URL = os.getenv("SITE_URL", "https://yourwebsite.com")


def allowed_origins():
    origins = ["http://localhost:3000", "http://localhost:3000/"]
    if FRONTEND_URL:
        origins = [FRONTEND_URL, FRONTEND_URL.rstrip("/") + "/"] + origins
    return origins
