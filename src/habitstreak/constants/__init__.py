"""Static option lists shared by services and routes."""
