"""Project composition for the preview sandbox."""
