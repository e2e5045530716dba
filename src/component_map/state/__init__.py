"""View-state ownership for the explorer."""
