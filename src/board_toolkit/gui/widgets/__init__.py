"""GUI widgets."""

from .distribution_tab import DistributionTab

__all__ = ["DistributionTab"]
