"""League rating domain: errors, lifecycle states and rating math."""
