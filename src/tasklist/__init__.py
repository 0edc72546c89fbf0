"""Personal task tracker: tasks, progress tracking and local persistence."""
