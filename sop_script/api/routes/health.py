from fastapi import APIRouter

from sop_script import __version__
from sop_script.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    """Liveness probe. The service has no backing stores, so live means ready."""
    return {
        "ok": True,
        "version": __version__,
        "grammar": settings.s1_grammar.value,
        "strict_operators": settings.s1_strict_operators,
    }
