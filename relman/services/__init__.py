"""Service layer: release orchestration on top of the git abstraction."""
