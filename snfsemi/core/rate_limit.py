"""
간단한 Redis 기반 로그인 시도 제한 유틸리티
"""

from __future__ import annotations

import logging
import time

from fastapi import Request

from snfsemi.core import database
from snfsemi.core.config import settings

logger = logging.getLogger(__name__)


async def check_rate_limit(bucket: str, max_requests: int, window_seconds: int = 60) -> tuple[bool, int]:
    """
    고정 윈도우 방식 레이트리밋.
    반환: (허용 여부, 남은 횟수)
    """
    client = database.redis_client
    if client is None:
        # Redis 미설정 시 제한 미적용
        return (True, max_requests)

    now = int(time.time())
    window = now // window_seconds
    key = f"rl:{bucket}:{window}"
    try:
        count = await client.incr(key)
        if count == 1:
            await client.expire(key, window_seconds)
        remaining = max(0, max_requests - count)
        return (count <= max_requests, remaining)
    except Exception as e:
        # Redis 장애 시 리밋을 우회(가용성 우선)
        logger.warning(f"rate limit 확인 실패 (우회): {e}")
        return (True, max_requests)


async def allow_login_attempt(request: Request, scope: str) -> bool:
    """로그인/인증코드 입력 시도 제한 (클라이언트 IP 기준)"""
    host = request.client.host if request.client else "unknown"
    allowed, _ = await check_rate_limit(f"{scope}:{host}", settings.LOGIN_RATE_LIMIT)
    if not allowed:
        logger.warning(f"[{scope}] 시도 제한 초과: {host}")
    return allowed
