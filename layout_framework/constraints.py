#!/usr/bin/env python3
"""
Named layout constraints.

A constraint is a predicate over a Layout with a name. Constraints are
created by name through ConstraintFactory so they can be listed in the
configuration file.
"""

from abc import ABC, abstractmethod
from string import ascii_lowercase, digits
from typing import Any, Dict, List, Optional

from layout_framework.layout_model import Layout


class Constraint(ABC):
    """Base class for layout constraints."""

    name = ""

    @abstractmethod
    def check(self, layout: Layout) -> bool:
        """Return True if the layout satisfies the constraint."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class LettersOnBase(Constraint):
    """No lowercase letter is tapped on a layer other than the base layer."""

    name = 'letters_on_base'

    def check(self, layout: Layout) -> bool:
        for layer in layout.layers[1:]:
            if any(char in ascii_lowercase for char in layer.characters()):
                return False
        return True


class DigitsOnOneLayer(Constraint):
    """All digits share a single layer."""

    name = 'digits_on_one_layer'

    def check(self, layout: Layout) -> bool:
        layers_with_digits = [
            layer_id for layer_id, layer in enumerate(layout.layers)
            if any(char in digits for char in layer.characters())
        ]
        return len(layers_with_digits) <= 1


class MaxLayers(Constraint):
    """Layout has at most `limit` layers, the base layer included."""

    name = 'max_layers'

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"max_layers limit must be at least 1, got {limit}")
        self.limit = limit

    def check(self, layout: Layout) -> bool:
        return layout.layer_count <= self.limit

    def __repr__(self) -> str:
        return f"MaxLayers(limit={self.limit})"


class ConstraintFactory:
    """Factory for creating constraint instances."""

    CONSTRAINTS = {
        'letters_on_base': LettersOnBase,
        'digits_on_one_layer': DigitsOnOneLayer,
        'max_layers': MaxLayers,
    }

    @classmethod
    def create_constraint(cls, name: str, options: Optional[Dict[str, Any]] = None) -> Constraint:
        """
        Create a constraint instance.

        Args:
            name: Registered constraint name
            options: Keyword arguments for the constraint constructor

        Returns:
            Constraint instance

        Raises:
            ValueError: If name is not recognized or options are invalid
        """
        if name not in cls.CONSTRAINTS:
            available = list(cls.CONSTRAINTS.keys())
            raise ValueError(f"Unknown constraint '{name}'. Available: {available}")

        try:
            return cls.CONSTRAINTS[name](**(options or {}))
        except TypeError as e:
            raise ValueError(f"Invalid options for constraint '{name}': {e}")

    @classmethod
    def create_constraints(cls, specs: List[Any]) -> List[Constraint]:
        """
        Create constraints from configuration entries.

        Each entry is either a name or a single-key mapping of name to options,
        e.g. ['letters_on_base', {'max_layers': {'limit': 5}}].
        """
        constraints = []
        for spec in specs:
            if isinstance(spec, str):
                constraints.append(cls.create_constraint(spec))
            elif isinstance(spec, dict) and len(spec) == 1:
                name, options = next(iter(spec.items()))
                constraints.append(cls.create_constraint(name, options))
            else:
                raise ValueError(f"Invalid constraint entry: {spec!r}")
        return constraints

    @classmethod
    def get_available_constraints(cls) -> List[str]:
        """Get list of available constraint names."""
        return list(cls.CONSTRAINTS.keys())
