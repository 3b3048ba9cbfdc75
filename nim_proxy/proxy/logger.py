import logging
import os


_LEVEL = getattr(logging, os.getenv("PROXY_LOG_LEVEL", "INFO").strip().upper(), logging.INFO)

logging.basicConfig(
    level=_LEVEL if isinstance(_LEVEL, int) else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("nim-proxy")
