import os
import logging


def setup_logging(config: dict):
    """Set up logging to file and console."""
    app_config = config.get("app", {})
    log_level_str = app_config.get("log_level", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    log_dir = app_config.get("log_dir", "logs")

    # Create logs directory if it doesn't exist
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplication
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    file_handler = logging.FileHandler(os.path.join(log_dir, "app.log"), encoding='utf-8')
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # The Firestore watch thread and httpx are chatty at INFO
    for noisy in ("httpx", "google.cloud.firestore_v1.watch"):
        logging.getLogger(noisy).setLevel(max(log_level, logging.WARNING))
