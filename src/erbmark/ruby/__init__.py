"""Ruby support: syntax completeness, reformatters and block classification."""
