"""Pipeline stages that stream notes: predicate filtering and top-N sorting."""
