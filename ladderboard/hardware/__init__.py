"""Physical board integration."""

from ladderboard.hardware.notifier import HardwareEvent, HardwareNotifier, hardware_notifier

__all__ = ["HardwareEvent", "HardwareNotifier", "hardware_notifier"]
