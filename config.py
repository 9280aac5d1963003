import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as courtbooking.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "courtbooking.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Header the upstream auth layer uses to forward the signed-in user id
    AUTH_USER_HEADER = os.getenv("AUTH_USER_HEADER", "X-Authenticated-User-Id")

    # Reservation rules
    PAYMENT_EXPIRY_MINUTES = int(os.getenv("PAYMENT_EXPIRY_MINUTES", "15"))
    SLOT_MINUTES = 60
    # Day boundaries for bookings are computed in this zone
    BOOKING_TIMEZONE = os.getenv("BOOKING_TIMEZONE", "Asia/Jakarta")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "IDR")

    # Expiry sweep
    EXPIRY_SWEEP_INTERVAL_SECONDS = int(os.getenv("EXPIRY_SWEEP_INTERVAL_SECONDS", "60"))

    # Payment gateway
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_SUCCESS_URL = os.getenv("STRIPE_SUCCESS_URL")
    STRIPE_CANCEL_URL = os.getenv("STRIPE_CANCEL_URL")
    # Shared secret for plain invoice callbacks (X-CALLBACK-TOKEN)
    PAYMENT_WEBHOOK_TOKEN = os.getenv("PAYMENT_WEBHOOK_TOKEN")

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Link sent to customers provisioned through manual bookings
    LOGIN_URL = os.getenv("LOGIN_URL")

    # Basic app settings
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DEBUG = False
