from kanban.logs.debug_log import debug_logger, log_function
from kanban.logs.server_log import api_logger

__all__ = ["debug_logger", "log_function", "api_logger"]
