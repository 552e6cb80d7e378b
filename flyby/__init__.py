"""FlyBy: multi-source flight tracking with proximity alerts."""
