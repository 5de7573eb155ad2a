"""Label set management: names, colors and the active selection."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .models import Label

logger = logging.getLogger(__name__)


class LabelSet:
    """
    Ordered collection of uniquely named labels.

    The active label is tracked by name so renaming a label keeps it
    active without holding on to a stale object.
    """

    def __init__(self, labels: Iterable[Label] = ()) -> None:
        self._labels: List[Label] = []
        # The first label added becomes active
        self._active_name: Optional[str] = None
        for label in labels:
            self.add(label.name, label.color)

    @classmethod
    def from_names(cls, names: Iterable[str], color: str) -> LabelSet:
        """Create a label set where every label shares one color."""
        return cls(Label(name, color) for name in names)

    @property
    def labels(self) -> List[Label]:
        return list(self._labels)

    @property
    def names(self) -> List[str]:
        return [label.name for label in self._labels]

    @property
    def active_name(self) -> Optional[str]:
        return self._active_name

    @property
    def active_label(self) -> Optional[Label]:
        """The active label, or None if nothing is selected."""
        return self.get(self._active_name) if self._active_name is not None else None

    def get(self, name: str) -> Optional[Label]:
        for label in self._labels:
            if label.name == name:
                return label
        return None

    def __contains__(self, name: object) -> bool:
        return any(label.name == name for label in self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def set_active(self, name: str) -> bool:
        """
        Select the active label by name.

        Returns:
            True if the label exists and is now active
        """
        if name not in self:
            logger.warning(f"Cannot activate unknown label: {name!r}")
            return False
        self._active_name = name
        return True

    def add(self, name: str, color: str) -> bool:
        """
        Add a new label.

        Returns:
            True if the label was added, False for empty or duplicate names
        """
        name = name.strip()
        if not name or name in self:
            logger.warning(f"Rejected label name: {name!r}")
            return False
        self._labels.append(Label(name, color))
        if self._active_name is None:
            self._active_name = name
        return True

    def rename(self, old_name: str, new_name: str) -> bool:
        """
        Rename a label.

        The new name is stripped of surrounding whitespace. The rename is
        rejected when it is then empty or already used by a different label.
        Annotation labels are not touched here; AnnotationStore.rename_label
        goes through this method and rewrites the annotations.

        Args:
            old_name: Current label name
            new_name: Desired label name

        Returns:
            True if the rename was accepted
        """
        new_name = new_name.strip()
        if not new_name or any(
            label.name == new_name and label.name != old_name for label in self._labels
        ):
            logger.warning(f"Rejected rename of {old_name!r} to {new_name!r}")
            return False

        for i, label in enumerate(self._labels):
            if label.name == old_name:
                self._labels[i] = Label(new_name, label.color)
                break
        else:
            logger.warning(f"Cannot rename unknown label: {old_name!r}")
            return False

        if self._active_name == old_name:
            self._active_name = new_name

        logger.info(f"Renamed label {old_name!r} to {new_name!r}")
        return True
