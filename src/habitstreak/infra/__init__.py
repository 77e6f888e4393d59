"""SQLModel-backed infrastructure."""
