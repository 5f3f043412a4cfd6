"""Core computational modules for visium-concordance.

This package contains:
- annotation: expert label canonicalization, joining and filtering
- agreement: Adjusted Rand Index between partitions
- clustering: normalization, clustering and differential expression
- markers: per-group top marker selection
- workflow: the end-to-end run
"""
