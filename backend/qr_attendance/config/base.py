"""Base configuration shared by every environment."""
import os

class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    AUTO_CREATE_TABLES = False

    # QR tokens. Any string works; non-Fernet keys are stretched with SHA-256.
    QR_TOKEN_SECRET = os.environ.get('QR_TOKEN_SECRET')
    QR_VALIDITY_DEFAULT_MINUTES = 15
    QR_VALIDITY_MIN_MINUTES = 5
    QR_VALIDITY_MAX_MINUTES = 60
    QR_BOX_SIZE = 10
    QR_BORDER = 4

    # Geofence
    CAMPUS_RADIUS_DEFAULT_METERS = 500
    CAMPUS_RADIUS_MIN_METERS = 50
    CAMPUS_RADIUS_MAX_METERS = 5000

    # Attendance status. None keeps the whole session window PRESENT.
    LATE_THRESHOLD_MINUTES = None

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "https://*.vercel.app", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_WRITE_LIMIT = "120 per hour"

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
