"""Sharpening, deconvolution, contrast equalization, banding and background correction."""
