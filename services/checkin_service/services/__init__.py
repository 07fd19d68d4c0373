"""Orchestration for check-ins, disclaimers, rewards and administration."""
