import logging


def configure_logging(level: int | str = logging.INFO) -> None:
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger = logging.getLogger("panda")
    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(handler)
