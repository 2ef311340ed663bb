import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root logger setup, called once from the app factory."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # fal_client/httpx log every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
