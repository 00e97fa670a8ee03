"""Admin moderation workflow."""

from .state_machine import UNSPECIFIED_REASON, ModerationService, ReviewPage

__all__ = ["ModerationService", "ReviewPage", "UNSPECIFIED_REASON"]
