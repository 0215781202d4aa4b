"""Infrastructure layer - persistence, notifications, logging and platform."""
