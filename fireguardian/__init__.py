"""FireGuardian maintenance-ticket lifecycle and notification service."""
