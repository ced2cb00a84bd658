import asyncio
import time
import logging
from functools import wraps
from typing import Callable, Any, Dict

from .config import settings

logger = logging.getLogger(__name__)

def monitor_performance(operation_name: str = None):
    """Decorator to time a service call and log slow ones"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            start_time = time.time()
            op_name = operation_name or f"{func.__module__}.{func.__name__}"

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                execution_time = time.time() - start_time
                performance_metrics.record_operation(op_name, execution_time, success=False)
                logger.error(f"Operation failed: {op_name} after {execution_time:.2f}s - {str(e)}")
                raise

            execution_time = time.time() - start_time
            performance_metrics.record_operation(op_name, execution_time)
            if execution_time > settings.slow_request_threshold:
                logger.warning(f"Slow operation detected: {op_name} took {execution_time:.2f}s")
            else:
                logger.debug(f"Operation completed: {op_name} in {execution_time:.2f}s")
            return result

        if not asyncio.iscoroutinefunction(func):
            raise TypeError("monitor_performance only wraps coroutine functions")
        return wrapper

    return decorator

class PerformanceMetrics:
    """Simple performance metrics collector"""
    def __init__(self):
        self.metrics: Dict[str, Dict[str, Any]] = {}

    def record_operation(self, operation: str, duration: float, success: bool = True):
        """Record operation metrics"""
        if operation not in self.metrics:
            self.metrics[operation] = {
                'count': 0,
                'total_time': 0.0,
                'failures': 0,
                'avg_time': 0.0,
                'max_time': 0.0,
            }

        entry = self.metrics[operation]
        entry['count'] += 1
        entry['total_time'] += duration
        entry['max_time'] = max(entry['max_time'], duration)

        if not success:
            entry['failures'] += 1

        entry['avg_time'] = entry['total_time'] / entry['count']

    def get_metrics(self) -> dict:
        """Get current metrics"""
        return {name: dict(values) for name, values in self.metrics.items()}

    def reset(self):
        self.metrics.clear()

# Global metrics instance
performance_metrics = PerformanceMetrics()
