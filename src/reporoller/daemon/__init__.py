"""Long-lived scan daemon: project cache, session state and run loop."""
