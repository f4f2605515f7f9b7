"""Session and data-synchronization layer for the photo sharing client."""
