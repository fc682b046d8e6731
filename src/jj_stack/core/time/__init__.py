from jj_stack.core.time.abc import Time
from jj_stack.core.time.real import RealTime

__all__ = ["RealTime", "Time"]
