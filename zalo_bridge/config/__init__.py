from zalo_bridge.config.config import Config, config

__all__ = ["Config", "config"]
