"""Admin surface: users, data and raw store keys."""
