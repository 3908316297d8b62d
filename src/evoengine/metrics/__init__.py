"""Statistics, timers and result persistence."""
