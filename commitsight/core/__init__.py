"""Shared infrastructure — logging setup and GitHub URL helpers."""
