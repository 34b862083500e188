"""Desktop notifications using notify-send."""

import shutil
import subprocess
from enum import Enum
from typing import Optional

from timer.config import APP_NAME, DEBUG
from timer.preferences import NOTIFICATION_PERMISSION_KEY


class Permission(str, Enum):
    """Notification permission as seen by the timer."""
    DEFAULT = "default"  # not decided yet
    GRANTED = "granted"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"  # no notification tool on this host


class DesktopNotifier:
    """
    Best-effort notifications. Nothing here raises or blocks the timer.

    The user's choice is persisted in the preference store.
    """

    COMMAND = "notify-send"

    def __init__(self, preferences, app_name: str = APP_NAME):
        self._preferences = preferences
        self.app_name = app_name

    def is_available(self) -> bool:
        return shutil.which(self.COMMAND) is not None

    @property
    def permission(self) -> Permission:
        if not self.is_available():
            return Permission.UNAVAILABLE

        raw = self._preferences.get(NOTIFICATION_PERMISSION_KEY, Permission.DEFAULT.value)
        try:
            permission = Permission(raw)
        except ValueError:
            return Permission.DEFAULT
        if permission is Permission.UNAVAILABLE:
            return Permission.DEFAULT
        return permission

    def set_permission(self, permission: Permission) -> bool:
        """Record the user's choice (granted or denied)."""
        if permission not in (Permission.GRANTED, Permission.DENIED, Permission.DEFAULT):
            return False
        return self._preferences.set(NOTIFICATION_PERMISSION_KEY, permission.value)

    def request_permission(self) -> Permission:
        """
        Ask for permission if it was never decided.

        A local desktop has no prompt, so an undecided permission becomes
        granted when the tool exists.
        """
        permission = self.permission
        if permission is Permission.DEFAULT:
            if self.set_permission(Permission.GRANTED):
                print("[Notify] Notifications enabled")
                return Permission.GRANTED
        return permission

    def notify(self, body: str, title: Optional[str] = None) -> bool:
        """
        Show a notification.

        Returns True if shown, False if not permitted or it failed.
        """
        if self.permission is not Permission.GRANTED:
            return False

        try:
            result = subprocess.run(
                [self.COMMAND, title or self.app_name, body],
                capture_output=True,
                timeout=5
            )
            if result.returncode == 0:
                if DEBUG:
                    print(f"[Notify] {body}")
                return True
            print(f"[Notify] Failed: {result.stderr.decode()}")
            return False
        except FileNotFoundError:
            print(f"[Notify] Error: {self.COMMAND} not installed. Run: sudo apt install libnotify-bin")
            return False
        except Exception as e:
            print(f"[Notify] Error showing notification: {e}")
            return False
