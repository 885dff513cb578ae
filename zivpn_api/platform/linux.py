"""
Linux service control for the ZiVPN server process.
Restarts the systemd unit after the accepted credential set changes.
"""
import logging
import subprocess
from typing import NamedTuple, List

logger = logging.getLogger("zivpn.platform")


class RestartResult(NamedTuple):
    """Outcome of a restart request"""
    success: bool
    message: str
    timed_out: bool = False


class ServiceController:
    """
    Restarts a systemd service through systemctl
    """

    def __init__(self, service_name: str = "zivpn.service", timeout: float = 30,
                 systemctl: str = "systemctl"):
        """
        Initialize the controller

        Args:
            service_name: systemd unit to restart
            timeout: Seconds to wait for systemctl before giving up
            systemctl: systemctl executable
        """
        self.service_name = service_name
        self.timeout = timeout
        self.systemctl = systemctl

    def _command(self) -> List[str]:
        return [self.systemctl, "restart", self.service_name]

    def restart(self) -> RestartResult:
        """
        Restart the service

        Never raises: the outcome is logged and returned.

        Returns:
            RestartResult
        """
        logger.info(f"Restarting service {self.service_name}")

        try:
            subprocess.run(
                self._command(),
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )

        except subprocess.TimeoutExpired:
            logger.error(f"Restart of {self.service_name} timed out after {self.timeout}s")
            return RestartResult(False, f"Timed out after {self.timeout}s", timed_out=True)

        except subprocess.CalledProcessError as e:
            err = e.stderr.strip() if e.stderr else str(e)
            logger.error(f"Failed to restart {self.service_name}: {err}")
            return RestartResult(False, err)

        except OSError as e:
            logger.error(f"Cannot run {self.systemctl}: {e}")
            return RestartResult(False, str(e))

        logger.info(f"Service {self.service_name} restarted")
        return RestartResult(True, f"Service {self.service_name} restarted")


class NullServiceController:
    """
    Used when restarts are disabled in the settings
    """

    def __init__(self, service_name: str = "zivpn.service"):
        self.service_name = service_name

    def restart(self) -> RestartResult:
        logger.info(f"Restart of {self.service_name} skipped (disabled)")
        return RestartResult(True, "Restart disabled")
