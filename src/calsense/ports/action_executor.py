"""Action executor interface."""

from typing import Protocol

from calsense.core.actions import ActionPreview


class ActionExecutor(Protocol):
    """Applies previews the user accepted. The engine never calls the provider itself."""

    def apply(self, previews: list[ActionPreview]) -> int:
        """Apply the previews. Returns how many were applied."""
        ...
