# CUI // SP-CTI
"""Terminal output helpers for archrecon tools."""
