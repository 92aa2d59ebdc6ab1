# IdeaCrafter package init
import logging
import os


LOG_FORMAT = "[IDEACRAFTER][%(levelname)s] %(name)s: %(message)s"

# HTTP client loggers used by the Supabase client; they log every request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "hpack")


def _level(name: str, default: int) -> int:
    value = getattr(logging, (os.getenv(name) or "").upper(), None)
    return value if isinstance(value, int) else default


def _configure_logging() -> None:
    level = _level("IDEACRAFTER_LOG_LEVEL", logging.INFO)
    logger = logging.getLogger("ideacrafter")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level)
    # own handler only; the API entrypoint also configures the root logger
    logger.propagate = False

    logging.getLogger("ideacrafter.llm").setLevel(_level("IDEACRAFTER_LLM_LOG_LEVEL", level))

    quiet = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)


_configure_logging()
