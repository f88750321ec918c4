"""Service layer for the school website client."""
