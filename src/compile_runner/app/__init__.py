"""HTTP application for the compile runner."""
