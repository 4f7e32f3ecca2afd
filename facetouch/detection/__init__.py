# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Embedding, classification and detection loop modules."""

from facetouch.detection.knn import KNNClassifier, compute_similarity
from facetouch.detection.loop import DetectionLoop
from facetouch.detection.pipeline import FramePipeline

__all__ = ["DetectionLoop", "FramePipeline", "KNNClassifier", "compute_similarity"]
