"""Service layer - business logic over the execution store and background dispatch."""
