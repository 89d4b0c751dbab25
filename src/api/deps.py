"""FastAPI dependency injection."""

from fastapi import Depends, HTTPException, Request, Response
from limits.storage import storage_from_string
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from src.config import settings
from src.data.analysis_client import AnalysisClient
from src.data.rate_limit import ClientRateLimiter

engine = create_async_engine(settings.database_url, echo=settings.debug)
async_session = async_sessionmaker(engine, expire_on_commit=False)

_limiter = ClientRateLimiter(
    storage_from_string(settings.rate_limit_storage_uri),
    tokens=settings.rate_limit_tokens,
    window_seconds=settings.rate_limit_window_seconds,
)


async def get_db() -> AsyncSession:
    async with async_session() as session:
        yield session


def get_analysis_client() -> AnalysisClient:
    return AnalysisClient()


def get_rate_limiter() -> ClientRateLimiter:
    return _limiter


def client_ip(request: Request) -> str:
    real_ip = request.headers.get("x-real-ip", "")
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    host = request.client.host if request.client else ""
    return real_ip or forwarded or host or "unknown"


def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: ClientRateLimiter = Depends(get_rate_limiter),
) -> None:
    key = client_ip(request)
    if not limiter.allow(key):
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded",
            headers={"X-RateLimit-Remaining": "0"},
        )
    response.headers["X-RateLimit-Remaining"] = str(limiter.remaining(key))
