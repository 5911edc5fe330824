"""structlog setup plus per-session logging and metric helpers."""
import structlog
import logging
import sys
from collections import defaultdict
from typing import Dict, Any, Optional
from datetime import datetime
import os


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "todo-agent"
) -> None:
    """Route structlog through stdlib logging on stdout"""
    
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            add_service_context,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    
    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development"),
    )


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in trace and session ids bound by the caller, if any"""
    
    event_dict.setdefault("timestamp", datetime.utcnow().isoformat())
    bound = structlog.contextvars.get_contextvars()
    for key in ("trace_id", "session_id"):
        if bound.get(key) and key not in event_dict:
            event_dict[key] = bound[key]
    return event_dict


class AgentLogger:
    """Session lifecycle records for the agent stream"""
    
    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)
        
    def log_session_started(
        self,
        session_id: str,
        model: str,
        max_turns: int,
        tools: int,
        standalone: bool
    ):
        self.logger.info(
            "session_started",
            session_id=session_id,
            model=model,
            max_turns=max_turns,
            tools=tools,
            standalone=standalone
        )
        
    def log_agent_event(
        self,
        event_type: str,
        session_id: str,
        data: Optional[Dict[str, Any]] = None
    ):
        self.logger.debug(
            "agent_event",
            event_type=event_type,
            session_id=session_id,
            data=data or {}
        )
        
    def log_session_finished(
        self,
        session_id: str,
        messages: int,
        events: int,
        duration_ms: float,
        error: Optional[str] = None
    ):
        """Log the end of a session, however it ended"""
        
        log = self.logger.error if error else self.logger.info
        log(
            "session_finished",
            session_id=session_id,
            messages=messages,
            events=events,
            duration_ms=round(duration_ms, 2),
            success=error is None,
            error=error
        )


agent_logger = AgentLogger("todo_agent")


class MetricsCollector:
    """In-process counters and latency stats, each update also logged"""
    
    def __init__(self):
        self.counters: Dict[str, int] = defaultdict(int)
        self.latencies: Dict[str, Dict[str, float]] = {}
        
    def record_latency(self, operation: str, duration_ms: float):
        stats = self.latencies.get(operation)
        if stats is None:
            self.latencies[operation] = {
                "count": 1,
                "sum": duration_ms,
                "min": duration_ms,
                "max": duration_ms,
            }
        else:
            stats["count"] += 1
            stats["sum"] += duration_ms
            stats["min"] = min(stats["min"], duration_ms)
            stats["max"] = max(stats["max"], duration_ms)
        agent_logger.logger.debug("metric", kind="latency", operation=operation, duration_ms=duration_ms)
        
    def increment_counter(self, name: str, value: int = 1):
        self.counters[name] += value
        agent_logger.logger.debug("metric", kind="counter", name=name, value=value)
        
    def get_metrics_summary(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = dict(self.counters)
        for operation, stats in self.latencies.items():
            summary[f"latency.{operation}"] = {
                "count": stats["count"],
                "avg": stats["sum"] / stats["count"],
                "min": stats["min"],
                "max": stats["max"],
            }
        return summary
        
    def reset(self):
        self.counters.clear()
        self.latencies.clear()


metrics = MetricsCollector()
