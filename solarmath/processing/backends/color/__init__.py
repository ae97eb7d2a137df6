"""Colorization of mono images and the spectral ray table."""
