"""Width-bounded layout of text runs and tag attributes."""
