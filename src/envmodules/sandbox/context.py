# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pooled evaluation namespaces, one per nesting depth.

Scripts run through ``exec`` in a plain dictionary namespace. Creating a
namespace means copying the builtins and binding every primitive, so each
depth keeps its namespace for the whole invocation. Before every use the
namespace is reset to the baseline captured when it was created: names a
previous script defined are dropped and the primitives are bound again in
case a script shadowed one of them.
"""

from __future__ import annotations

import builtins
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Final

Namespace = dict[str, Any]
NamespaceFactory = Callable[[], Mapping[str, Any]]

SCRIPT_MODULE_NAME: Final[str] = "__modulefile__"
_REPLACED_BUILTINS: Final[tuple[str, ...]] = ("exit", "quit", "print")


def _builtins_for(primitives: Mapping[str, Any]) -> dict[str, Any]:
    table = dict(vars(builtins))
    for name in _REPLACED_BUILTINS:
        if name in primitives:
            table[name] = primitives[name]
    return table


@dataclass(slots=True)
class EvaluationContext:
    """Namespace reused by every script evaluated at one depth."""

    depth: int
    namespace: Namespace
    baseline: Namespace
    uses: int = 0

    def reset(self, **variables: Any) -> Namespace:
        """Return the namespace restored to its baseline plus ``variables``."""

        namespace = self.namespace
        for name in [name for name in namespace if name not in self.baseline]:
            del namespace[name]
        namespace.update(self.baseline)
        namespace["__builtins__"] = dict(self.baseline["__builtins__"])
        namespace.update(variables)
        self.uses += 1
        return namespace


@dataclass(slots=True)
class ContextPool:
    """Lazily created :class:`EvaluationContext` objects indexed by depth."""

    factory: NamespaceFactory
    _contexts: dict[int, EvaluationContext] = field(default_factory=dict)

    def acquire(self, depth: int, **variables: Any) -> Namespace:
        """Return the reset namespace dedicated to ``depth``.

        Args:
            depth: Nesting depth of the evaluation, starting at 1.
            **variables: Script variables set after the reset.

        Returns:
            Namespace: Namespace ready to receive ``exec``.
        """

        context = self._contexts.get(depth)
        if context is None:
            primitives = dict(self.factory())
            baseline: Namespace = {
                "__name__": SCRIPT_MODULE_NAME,
                "__builtins__": _builtins_for(primitives),
                **primitives,
            }
            context = EvaluationContext(depth=depth, namespace=dict(baseline), baseline=baseline)
            self._contexts[depth] = context
        return context.reset(**variables)

    def __len__(self) -> int:
        return len(self._contexts)


__all__ = ["ContextPool", "EvaluationContext", "Namespace", "NamespaceFactory", "SCRIPT_MODULE_NAME"]
