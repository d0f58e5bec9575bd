"""Backend services for the workout parser."""
