from zalo_bridge.zalo.client import ZaloClient

__all__ = ["ZaloClient"]
