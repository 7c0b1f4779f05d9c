"""ORB feature extraction, keypoint distribution and descriptor matching."""

__version__ = "0.1.0"