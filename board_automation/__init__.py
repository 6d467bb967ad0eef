"""Board automation and scheduling engine for the kanban backend."""
