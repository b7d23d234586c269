"""
Assembly Monitor - metrics and alerts for board assembly
"""

import logging
import time
from collections import defaultdict, deque
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class AssemblyMonitor:
    """Records how board assemblies and reveals are going"""
    
    def __init__(self, max_history: int = 1000):
        self.max_history = max_history
        self.metrics_history = deque(maxlen=max_history)
        self.counters: Dict[str, int] = defaultdict(int)
        self.alerts = deque(maxlen=100)
        self.start_time = time.time()
    
    def record_metric(self, metric_name: str, value: float,
                      tags: Optional[Dict[str, str]] = None):
        """Record a metric"""
        self.metrics_history.append({
            "name": metric_name,
            "value": value,
            "tags": tags or {},
            "timestamp": time.time()
        })
    
    def increment(self, counter: str, amount: int = 1):
        self.counters[counter] += amount
    
    def record_assembly(self, outcome: str, duration: float, generation: int):
        """Record the end of one start_game call (ready/unavailable/stale)"""
        self.increment(f"assemblies_{outcome}")
        self.record_metric("assembly_seconds", duration,
                           {"outcome": outcome, "generation": str(generation)})
    
    def add_alert(self, severity: str, message: str, component: Optional[str] = None):
        """Add an alert"""
        self.alerts.append({
            "severity": severity,
            "message": message,
            "component": component,
            "timestamp": time.time()
        })
        logger.warning(f"Alert [{severity}]: {message}")
    
    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics"""
        current_time = time.time()
        
        grouped = defaultdict(list)
        for metric in self.metrics_history:
            grouped[metric["name"]].append(metric["value"])
        
        summary = {}
        for name, values in grouped.items():
            summary[name] = {
                "count": len(values),
                "average": sum(values) / len(values),
                "min": min(values),
                "max": max(values),
                "latest": values[-1]
            }
        
        return {
            "uptime": current_time - self.start_time,
            "counters": dict(self.counters),
            "metrics_summary": summary,
            "alerts": list(self.alerts)[-10:]  # Last 10 alerts
        }
    
    def reset(self):
        """Clear recorded data"""
        self.metrics_history.clear()
        self.counters.clear()
        self.alerts.clear()
