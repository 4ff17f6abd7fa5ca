"""Core modules for the image reader backend."""
