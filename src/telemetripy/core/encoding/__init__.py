"""Wire encoders for the log and metrics push backends."""

from telemetripy.core.encoding.loki import build_log_push
from telemetripy.core.encoding.otlp import build_metric_envelope

__all__ = ["build_log_push", "build_metric_envelope"]
