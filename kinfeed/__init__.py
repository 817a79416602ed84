"""kinfeed: federated search service for family updates."""
