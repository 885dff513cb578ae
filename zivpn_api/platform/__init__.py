"""
Platform-specific control of the VPN server process.
"""

from zivpn_api.platform.linux import ServiceController, NullServiceController, RestartResult

__all__ = ['ServiceController', 'NullServiceController', 'RestartResult']
