import time
import json
import logging
from typing import Optional
from functools import wraps

logger = logging.getLogger("hablaconmigo.telemetry")


def emit_event(event: str, *, route: str, version: str, kind: Optional[str] = None,
               level: Optional[int] = None, status: Optional[str] = None,
               attempts: Optional[int] = None, score: Optional[float] = None,
               error_type: Optional[str] = None, latency_ms: Optional[int] = None,
               ok: Optional[bool] = None):
    payload = {
        "event": event,
        "route": route,
        "version": version,
        "kind": kind,
        "level": level,
        "status": status,
        "attempts": attempts,
        "score": score,
        "error_type": error_type,
        "latency_ms": latency_ms,
        "ok": ok,
        "ts": time.time(),
    }
    # log as single-line JSON for easy parsing in prod
    logger.info("telemetry=%s", json.dumps(payload, separators=(",", ":")))


def instrument(route: str, version: str):
    """Wrap an async route handler with one ``api_call`` event (latency, ok, error type)."""
    def deco(fn):
        @wraps(fn)
        async def wrapped(*args, **kwargs):
            t0 = time.time()
            ok = True
            err = None
            try:
                return await fn(*args, **kwargs)
            except Exception as e:
                ok = False
                status_code = getattr(e, "status_code", None)
                err = f"{e.__class__.__name__}:{status_code}" if status_code else e.__class__.__name__
                raise
            finally:
                dt = int((time.time() - t0) * 1000)
                emit_event("api_call", route=route, version=version, latency_ms=dt, ok=ok,
                           error_type=err)
        return wrapped
    return deco
