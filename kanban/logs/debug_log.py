import logging
import sys
import os
import json
import inspect
import datetime
from pathlib import Path
from functools import wraps
import traceback

# Директория для логов: рядом с модулем, если не задана через LOG_DIR
log_dir = Path(os.getenv("LOG_DIR", Path(__file__).parent))
log_dir.mkdir(parents=True, exist_ok=True)

# Константы для цветного вывода
BLUE = '\033[94m'
GREEN = '\033[92m'
YELLOW = '\033[93m'
RED = '\033[91m'
PURPLE = '\033[95m'
CYAN = '\033[96m'
BOLD = '\033[1m'
END = '\033[0m'

MAX_RESULT_LENGTH = 1000


def format_object(obj):
    """Render an object for a log line, hiding SQLAlchemy internals"""
    if hasattr(obj, '__table__'):
        # ORM-модель: выводим только колонки таблицы
        return f"<{type(obj).__name__} " + ", ".join(
            f"{column.name}={obj.__dict__.get(column.name)!r}"
            for column in obj.__table__.columns
            if column.name in obj.__dict__
        ) + ">"
    if isinstance(obj, (list, dict, tuple, set)):
        try:
            return json.dumps(obj, indent=2, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return str(obj)
    if hasattr(obj, '__dict__'):
        return str({k: v for k, v in obj.__dict__.items() if not k.startswith('_')})
    return str(obj)


class DebugLogger:
    """Debug logger with caller information and colored console output"""
    
    def __init__(self, name="debug", level=logging.DEBUG):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.propagate = False
        
        # Очищаем handlers если они уже были добавлены
        if self.logger.handlers:
            self.logger.handlers.clear()
        
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )
        
        file_handler = logging.FileHandler(log_dir / "debug.log", encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        
        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)
    
    def debug(self, message, *args, **kwargs):
        """Debug line prefixed with the caller's file, line and function"""
        frame = inspect.currentframe().f_back
        filename = frame.f_code.co_filename
        lineno = frame.f_lineno
        function = frame.f_code.co_name
        
        # Относительный путь внутри пакета
        if "kanban" in filename:
            filename = filename[filename.index("kanban"):]
        
        caller_info = f"{BLUE}[{filename}:{lineno} - {function}]{END}"
        self.logger.debug(f"{caller_info} {message}", *args, **kwargs)
    
    def info(self, message, *args, **kwargs):
        self.logger.info(f"{GREEN}{message}{END}", *args, **kwargs)
    
    def warning(self, message, *args, **kwargs):
        self.logger.warning(f"{YELLOW}{message}{END}", *args, **kwargs)
    
    def error(self, message, *args, **kwargs):
        """Error line, with the active traceback appended if there is one"""
        trace = traceback.format_exc()
        if trace and trace != 'NoneType: None\n':
            message = f"{message}\n{RED}Traceback:{END}\n{trace}"
        self.logger.error(f"{RED}{message}{END}", *args, **kwargs)
    
    def start_func(self, func_name, params=None):
        params_str = ""
        if params:
            params_str = f" with params: {format_object(params)}"
        self.debug(f"{PURPLE}Start {func_name}{END}{params_str}")
    
    def end_func(self, func_name, result=None, execution_time=None):
        result_str = ""
        if result is not None:
            rendered = format_object(result)
            result_str = f", result: {rendered[:MAX_RESULT_LENGTH]}"
            if len(rendered) > MAX_RESULT_LENGTH:
                result_str += "... [truncated]"
        
        time_str = ""
        if execution_time:
            time_str = f", took {execution_time:.4f}s"
        
        self.debug(f"{PURPLE}End {func_name}{END}{result_str}{time_str}")
    
    def log_exception(self, message="Unhandled exception"):
        """Log the exception currently being handled"""
        exc_type, exc_value, _ = sys.exc_info()
        if exc_type:
            self.error(f"{message}: {exc_type.__name__}: {exc_value}")
        else:
            self.error(message)
    
    def log_request(self, request):
        """Log an incoming HTTP request"""
        method = getattr(request, 'method', 'UNKNOWN')
        url = str(getattr(request, 'url', 'UNKNOWN'))
        client = getattr(request, 'client', None)
        client_host = client.host if client else "unknown"
        self.debug(f"{CYAN}HTTP request:{END} {method} {url} from {client_host}")
    
    def log_response(self, response, process_time=None):
        """Log an outgoing HTTP response"""
        status_code = getattr(response, 'status_code', 0)
        color = GREEN if 200 <= status_code < 400 else YELLOW if 400 <= status_code < 500 else RED
        info = f"{CYAN}HTTP response:{END} {color}{status_code}{END}"
        if process_time is not None:
            info += f" in {process_time:.3f}s"
        self.debug(info)


def _collect_arguments(func, args, kwargs):
    func_args = dict(zip(inspect.getfullargspec(func).args, args))
    func_args.update(kwargs)
    # Сессию БД и self/cls не логируем
    for name in ('self', 'cls', 'db'):
        func_args.pop(name, None)
    return func_args


def log_function(logger=None):
    """Decorator logging entry, exit, duration and failures of a function.

    Works for both plain functions and coroutines; for coroutines the
    result is logged after it is awaited.
    """
    def decorator(func):
        active_logger = logger or debug_logger

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = datetime.datetime.now()
                active_logger.start_func(func.__name__, _collect_arguments(func, args, kwargs))
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    active_logger.log_exception(f"Error in {func.__name__}")
                    raise
                execution_time = (datetime.datetime.now() - start_time).total_seconds()
                active_logger.end_func(func.__name__, result, execution_time)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = datetime.datetime.now()
            active_logger.start_func(func.__name__, _collect_arguments(func, args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                active_logger.log_exception(f"Error in {func.__name__}")
                raise
            execution_time = (datetime.datetime.now() - start_time).total_seconds()
            active_logger.end_func(func.__name__, result, execution_time)
            return result

        return wrapper

    return decorator


# Глобальный экземпляр логгера для дебага
debug_logger = DebugLogger()
