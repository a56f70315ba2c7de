# util/timing.py
import time
from contextlib import contextmanager
from typing import Iterator, Any
import logging


@contextmanager
def timed(
    logger: logging.Logger, name: str, level: int = logging.DEBUG, **kv: Any
) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "allocation.allocate", app=app_id, pairs=3):
          ...
    Emits one record on exit (DEBUG by default): "<name>.done ms=<int> key=val ..."
    A failing block is reported as "<name>.failed" instead.
    """
    t0 = time.perf_counter()
    outcome = "done"
    try:
        yield
    except BaseException:
        outcome = "failed"
        raise
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.log(level, "%s.%s ms=%d%s", name, outcome, dt_ms, suffix)
