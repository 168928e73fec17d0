import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./parking.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production-campus-parking-jwt-key")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# Bootstrap account, created on startup when the accounts table is empty
ADMIN_NAME = os.getenv("ADMIN_NAME", "Administrator")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@campus.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")

# MQTT notifications are disabled when MQTT_HOST is not set
MQTT_HOST = os.getenv("MQTT_HOST")
MQTT_PORT = int(os.getenv("MQTT_PORT", "1883"))
MQTT_TLS_PORT = int(os.getenv("MQTT_TLS_PORT", "8883"))
MQTT_USERNAME = os.getenv("MQTT_USERNAME")
MQTT_PASSWORD = os.getenv("MQTT_PASSWORD")
MQTT_TLS_ENABLED = os.getenv("MQTT_TLS_ENABLED", "false").lower() == "true"
MQTT_CA_CERT = os.getenv("MQTT_CA_CERT")
MQTT_CLIENT_CERT = os.getenv("MQTT_CLIENT_CERT")
MQTT_CLIENT_KEY = os.getenv("MQTT_CLIENT_KEY")
MQTT_TOPIC_PREFIX = os.getenv("MQTT_TOPIC_PREFIX", "parking")
