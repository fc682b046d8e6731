"""Stacked GitHub pull requests for Jujutsu changes."""
