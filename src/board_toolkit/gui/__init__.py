"""
PySide6 front end for script distribution.

Subpackages:
- board_toolkit.gui.widgets – DistributionTab
- board_toolkit.gui.utils – log queue plumbing
"""
