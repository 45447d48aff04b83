# config.py
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "KelasSbd")

# CLOUDINARY_URL (cloudinary://<api_key>:<api_secret>@<cloud_name>) is read
# straight from the environment by the cloudinary SDK

# Secret key for signed identity tokens - change this in production!
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "120"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost").split(",")
    if origin.strip()
]

# Multipart submission limits
MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", "5"))
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))

DEADLINE_WINDOW_DAYS = int(os.getenv("DEADLINE_WINDOW_DAYS", "7"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
