"""ComfyRun: prompt-to-image job submission and completion tracking."""
