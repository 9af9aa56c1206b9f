"""Readers for kernel block device statistics."""
