"""HTTP boundary layer for Parley."""
