import logging
import sys
import os
from pathlib import Path

log_dir = Path(os.getenv("LOG_DIR", Path(__file__).parent))
log_dir.mkdir(parents=True, exist_ok=True)


def setup_logging() -> logging.Logger:
    """Request/event logger writing to api_requests.log and stdout"""
    logger = logging.getLogger("api_logger")
    logger.setLevel(logging.INFO)
    
    # Повторный импорт не должен дублировать обработчики
    if logger.handlers:
        return logger
    
    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    
    file_handler = logging.FileHandler(log_dir / "api_requests.log", encoding='utf-8')
    file_handler.setFormatter(formatter)
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    
    return logger


api_logger = setup_logging()
