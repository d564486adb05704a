import logging

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..deps import get_db, get_storage
from ..infra.redis_client import get_sync_redis
from ..services.storage import BlobStore

router = APIRouter()
logger = logging.getLogger("cookbook.ready")


@router.get("/ready")
def ready(db: Session = Depends(get_db), store: BlobStore = Depends(get_storage)):
    """Readiness tracks the database; Redis and the blob store are reported only."""
    db_ok = False
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"Database not ready: {e}")

    redis_ok = False
    try:
        redis_ok = bool(get_sync_redis().ping())
    except RedisError as e:
        logger.warning(f"Redis not ready: {e}")

    storage_ok = False
    try:
        storage_ok = bool(store.healthcheck())
    except (BotoCoreError, ClientError, OSError) as e:
        logger.warning(f"Blob store not ready: {e}")

    return {"ok": db_ok, "db_ok": db_ok, "redis_ok": redis_ok, "storage_ok": storage_ok}
