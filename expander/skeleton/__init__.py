"""Skeleton extraction and large-source skeletonization."""

from expander.skeleton.extractor import SkeletonExtractor
from expander.skeleton.formatting import format_skeleton_for_injection
from expander.skeleton.two_tier import TieredSource, TwoTierSkeletonizer

__all__ = ["SkeletonExtractor", "TieredSource", "TwoTierSkeletonizer", "format_skeleton_for_injection"]
