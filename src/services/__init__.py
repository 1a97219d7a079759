"""Match lifecycle and rating consolidation services."""
