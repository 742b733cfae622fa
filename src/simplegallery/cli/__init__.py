"""Command line tasks for simplegallery."""
