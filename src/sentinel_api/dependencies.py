"""Process-wide service instance shared by the routers."""

from common.config import ConfigSingleton
from sentinel.log_buffer import RunLogBuffer, install_log_buffer
from sentinel.sentinel import SentinelService

_manager = ConfigSingleton(SentinelService.from_config)
set_service = _manager.set
reset_service = _manager.reset


def get_service() -> SentinelService:
    """Dependency returning the sentinel service (built from config on first use)."""
    return _manager.get()


def get_log_buffer() -> RunLogBuffer:
    """Dependency returning the shared sentinel log buffer."""
    return install_log_buffer()
