"""
Business logic services.
"""
from app.services.credit_service import CreditService
from app.services.rate_limiter import RateLimiter
from app.services.artifact_store import ArtifactStore
from app.services.consent_service import ConsentService
from app.services.generation_service import GenerationService

__all__ = [
    "CreditService",
    "RateLimiter",
    "ArtifactStore",
    "ConsentService",
    "GenerationService",
]
