# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Incremental nearest-neighbor classifier over frame embeddings.

Examples are added one at a time while the user records; there is no
training step. Prediction compares the query against every stored example
and lets the closest ones vote, weighted by similarity.
"""

import logging
from typing import Dict, List, Optional

import numpy as np

from facetouch.exceptions import InsufficientExamples
from facetouch.models.state import DetectionResult, Label, LabeledExample

logger = logging.getLogger(__name__)


def compute_similarity(embedding1: np.ndarray, embedding2: np.ndarray) -> float:
    """Compute cosine similarity between two embeddings.

    Args:
        embedding1: First embedding
        embedding2: Second embedding

    Returns:
        Similarity score (0-1, higher = more similar)
    """
    norm1 = np.linalg.norm(embedding1)
    norm2 = np.linalg.norm(embedding2)

    if norm1 == 0 or norm2 == 0:
        return 0.0

    similarity = np.dot(embedding1, embedding2) / (norm1 * norm2)

    # Convert from [-1, 1] to [0, 1]
    return float((similarity + 1) / 2)


class KNNClassifier:
    """Similarity-weighted k-nearest-neighbor classifier.

    Usage:
        classifier = KNNClassifier(neighbors=3)
        classifier.add_example(embedding, Label.NOT_TOUCHING)
        classifier.add_example(other, Label.TOUCHING)
        result = classifier.predict(query)
    """

    def __init__(self, neighbors: int = 3):
        """Initialize an empty classifier.

        Args:
            neighbors: Number of closest examples that vote on a prediction
        """
        if neighbors < 1:
            raise ValueError("neighbors must be at least 1")
        self.neighbors = neighbors
        self._examples: List[LabeledExample] = []
        self._counts: Dict[Label, int] = {label: 0 for label in Label}
        self._dimension: Optional[int] = None

    def add_example(self, embedding: np.ndarray, label: int) -> None:
        """Store a labeled embedding.

        Args:
            embedding: 1-D feature vector
            label: 0 (not touching) or 1 (touching)
        """
        label = Label(label)
        vector = np.array(embedding, dtype=np.float32).ravel()

        if self._dimension is None:
            self._dimension = vector.shape[0]
        elif vector.shape[0] != self._dimension:
            raise ValueError(
                f"Embedding length {vector.shape[0]} does not match "
                f"stored length {self._dimension}"
            )

        vector.setflags(write=False)
        self._examples.append(LabeledExample(embedding=vector, label=label))
        self._counts[label] += 1

    def class_count(self, label: int) -> int:
        """Number of examples stored for a label."""
        return self._counts.get(Label(label), 0)

    @property
    def num_classes(self) -> int:
        """Number of labels with at least one example."""
        return sum(1 for count in self._counts.values() if count > 0)

    @property
    def total_examples(self) -> int:
        return len(self._examples)

    @property
    def dimension(self) -> Optional[int]:
        """Embedding length, fixed by the first example."""
        return self._dimension

    def predict(self, embedding: np.ndarray) -> DetectionResult:
        """Classify an embedding against the stored examples.

        Args:
            embedding: 1-D feature vector of the stored length

        Returns:
            DetectionResult with the winning label and per-label confidences

        Raises:
            InsufficientExamples: If either label has no examples yet
        """
        missing = [label.name for label in Label if self._counts[label] == 0]
        if missing:
            raise InsufficientExamples(f"No examples for {', '.join(missing)}")

        query = np.asarray(embedding, dtype=np.float32).ravel()
        if query.shape[0] != self._dimension:
            raise ValueError(
                f"Embedding length {query.shape[0]} does not match "
                f"stored length {self._dimension}"
            )

        similarities = np.array(
            [compute_similarity(query, example.embedding) for example in self._examples]
        )

        k = min(self.neighbors, len(self._examples))
        # Stable sort keeps insertion order among equal similarities
        nearest = np.argsort(-similarities, kind="stable")[:k]

        votes = {label: 0.0 for label in Label}
        for index in nearest:
            votes[self._examples[index].label] += float(similarities[index])

        total = sum(votes.values())
        if total == 0:
            votes = {label: 0.0 for label in Label}
            for index in nearest:
                votes[self._examples[index].label] += 1.0
            total = float(k)

        confidences = {label: votes[label] / total for label in Label}

        # Ties resolve to the lower label
        predicted = max(Label, key=lambda label: (confidences[label], -label.value))

        logger.debug(
            f"Predicted {predicted.name} "
            f"(touching={confidences[Label.TOUCHING]:.3f}, k={k})"
        )
        return DetectionResult(predicted_label=predicted, confidences=confidences)
