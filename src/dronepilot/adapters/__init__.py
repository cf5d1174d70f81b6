"""Device adapters for dronepilot."""
