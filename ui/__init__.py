"""HTTP surface for Timekeep."""
