# ==========================================================================================================
# -------------- Configuration file for the task platform Flask application --------------------------------
# ==========================================================================================================
import os
from dotenv import load_dotenv


if os.environ.get("FLASK_ENV") != "production":
    load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default="False"):
    return os.getenv(name, default).lower() in ("true", "1", "t")


class Config:

    SECRET_KEY = os.getenv("SECRET_KEY")
    if not SECRET_KEY:
        raise ValueError("SECRET_KEY must be set")

    FLASK_ENV = os.getenv("FLASK_ENV", "production")
    DEBUG = _env_flag("DEBUG")

    # Flat-file storage
    DATA_DIR = os.getenv("DATA_DIR", os.path.join(basedir, "Data"))
    LOG_DIR = os.getenv("LOG_DIR", "logs")

    # Bearer tokens. There is no safe default signing key.
    JWT_KEY = os.getenv("JWT_KEY")
    if not JWT_KEY:
        raise ValueError("JWT_KEY must be set")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "MobileECommerceAPI")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "MobileECommerceClient")
    JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))

    TOKEN_COOKIE_NAME = "userToken"
    TOKEN_COOKIE_DAYS = 7

    # Pages that appear in neither page table pass through unless this is set
    PAGE_DEFAULT_PROTECTED = _env_flag("PAGE_DEFAULT_PROTECTED")

    STARTING_BALANCE = "10.0"
    DEFAULT_CREDIT_SCORE = 100
    DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "+86")

    SESSION_COOKIE_HTTPONLY = True
