"""Agora command-line interface."""
