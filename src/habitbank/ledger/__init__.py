"""Habit and reward ledgers over per-user aggregates."""
