"""Server-wide constants."""

PROJECT_NAME = "Capability Runtime Monitor"
API_V1_STR = "/api/v1"
