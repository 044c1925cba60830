import logging


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    # Lock acquisition chatter is only useful when debugging fasteners itself.
    logging.getLogger("fasteners").setLevel(logging.WARNING)
