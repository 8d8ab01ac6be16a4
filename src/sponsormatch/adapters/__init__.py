"""Store and notification adapters for the sponsorship marketplace."""
