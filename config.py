"""
Configuration settings for the Internal Components Mapper
"""

import os
from pathlib import Path

# External services
DOCUMENT_STORE_API_URL = os.getenv(
    "DOCUMENT_STORE_API_URL", "http://localhost:8080/__document-store-api"
)
BLOG_UUID_RESOLVER_URL = os.getenv(
    "BLOG_UUID_RESOLVER_URL", "http://localhost:8080/__blog-uuid-resolver"
)

# Performance settings
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))  # seconds

# Eligibility settings
ELIGIBLE_WORKFLOW_STATUSES = [
    status.strip()
    for status in os.getenv(
        "ELIGIBLE_WORKFLOW_STATUSES",
        "Stories/WebReady,Stories/Edit,Stories/Sub",
    ).split(",")
    if status.strip()
]

# Logging settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "internal_components.log")
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_ROTATION_SIZE = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 5
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() == "true"

# Output settings
JSON_INDENT = 2
