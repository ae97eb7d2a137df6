"""Disk geometry operations: blending, filling, masking and rescaling."""
