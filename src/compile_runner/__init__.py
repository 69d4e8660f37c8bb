"""Compile runner: single-flight compilation service."""
