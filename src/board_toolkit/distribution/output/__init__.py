"""
Module: distribution.output

Purpose:
    Printable output for committed distributions.

Key Functions:
    - render_distribution_sheet(): Distribution sheet PDF

Dependencies:
    - reportlab: PDF generation
"""

from .sheet import render_distribution_sheet

__all__ = ["render_distribution_sheet"]
