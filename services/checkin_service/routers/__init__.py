"""HTTP routers for the check-in service."""
