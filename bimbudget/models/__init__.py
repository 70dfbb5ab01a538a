"""Data models: BIM metadata snapshots and budget trees."""
