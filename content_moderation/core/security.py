"""
Security utilities and input validation for the moderation engine.

This module provides reviewer authentication, per-client rate limiting and
sanitising of submitted text before it reaches the classifiers.
"""

import re
import time
from typing import Dict, Any, Optional
from fastapi import Request, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from content_moderation.core.config import settings
from content_moderation.core.logger import logger
from content_moderation.core.exceptions import (
    RateLimitException,
    ValidationException,
    create_http_exception,
)

# Security configuration
MAX_TITLE_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 10000
MAX_URL_LENGTH = 2048
RATE_LIMIT_REQUESTS = 100  # requests per window
RATE_LIMIT_WINDOW = 3600  # seconds (1 hour)

# In-memory rate limiting (in production, use Redis)
rate_limit_storage: Dict[str, Dict[str, Any]] = {}

security = HTTPBearer(auto_error=False)


def sanitize_input(text: Optional[str]) -> str:
    """
    Strip null bytes and control characters from user input.

    Newlines and tabs are kept; runs of three or more whitespace
    characters are collapsed.
    """
    if not text:
        return ""

    text = text.replace('\x00', '')
    text = re.sub(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]', '', text)
    text = re.sub(r'\s{3,}', '  ', text)

    return text.strip()


def check_length(value: Optional[str], limit: int, field: str) -> None:
    """Raise ValidationException if value is longer than limit."""
    if value and len(value) > limit:
        raise ValidationException(
            f"{field} exceeds maximum length of {limit} characters",
            field=field
        )


def check_rate_limit(client_ip: str) -> bool:
    """
    Check if client has exceeded rate limit.

    Args:
        client_ip: Client IP address

    Returns:
        True if within rate limit, False if exceeded
    """
    current_time = time.time()

    client_data = rate_limit_storage.setdefault(client_ip, {'requests': []})

    window_start = current_time - RATE_LIMIT_WINDOW
    client_data['requests'] = [
        req_time for req_time in client_data['requests']
        if req_time > window_start
    ]

    if len(client_data['requests']) >= RATE_LIMIT_REQUESTS:
        return False

    client_data['requests'].append(current_time)
    return True


def get_client_ip(request: Request) -> str:
    # Check for forwarded headers first (for load balancers/proxies)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def rate_limit_dependency(request: Request):
    """
    FastAPI dependency for rate limiting.

    Raises:
        HTTPException: If rate limit exceeded
    """
    client_ip = get_client_ip(request)

    if not check_rate_limit(client_ip):
        logger.warning(
            f"Rate limit exceeded for client {client_ip}",
            extra={"client_ip": client_ip, "limit": RATE_LIMIT_REQUESTS}
        )
        raise create_http_exception(RateLimitException(
            f"Rate limit exceeded. Maximum {RATE_LIMIT_REQUESTS} requests per hour.",
            retry_after=RATE_LIMIT_WINDOW
        ))


def get_reviewer_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """
    Resolve the reviewer behind a bearer key.

    Returns None for a missing or unknown key; the services decide whether
    an anonymous caller is acceptable.
    """
    if credentials is None or not credentials.credentials:
        return None

    reviewer_id = settings.reviewer_api_keys.get(credentials.credentials)
    if reviewer_id is None:
        logger.warning("Unknown reviewer key presented")
    return reviewer_id
