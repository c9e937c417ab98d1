"""Plugin dependency graph.

Nodes are created lazily: registering a plugin also creates placeholder
nodes for any dependency names that have not been registered yet. Ordering
a closure that reaches a placeholder fails with ``PluginNotFoundError``,
which keeps dependency typos distinct from real cycles.

Dependents are never stored. They are derived from the declared
dependencies of every other node, so re-registering a plugin with a new
dependency list cannot leave stale reverse edges behind.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from .errors import (
    BlockedByDependentsError,
    CircularDependencyError,
    PluginNotFoundError,
    UnmetDependencyError,
)


class DependencyPlugin(Protocol):
    """Anything that has a name and declares dependencies."""

    def get_name(self) -> str: ...

    def get_dependencies(self) -> list[str]: ...


@dataclass
class GraphNode:
    """One plugin name in the graph. ``plugin`` is None for placeholders."""

    name: str
    plugin: DependencyPlugin | None = None
    dependencies: list[str] = field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return self.plugin is None


# Node colors for the whole-graph cycle scan
_WHITE, _GRAY, _BLACK = 0, 1, 2


class DependencyGraph:
    """Directed graph of plugin -> dependency edges."""

    def __init__(self) -> None:
        self._nodes: dict[str, GraphNode] = {}

    def add_plugin(self, plugin: DependencyPlugin) -> None:
        """Register or replace a plugin and its dependency list."""
        name = plugin.get_name()
        dependencies = list(dict.fromkeys(plugin.get_dependencies()))

        node = self._nodes.get(name)
        if node is None:
            node = GraphNode(name)
            self._nodes[name] = node
        node.plugin = plugin
        node.dependencies = dependencies

        for dep in dependencies:
            if dep not in self._nodes:
                self._nodes[dep] = GraphNode(dep)

    def node(self, name: str) -> GraphNode | None:
        return self._nodes.get(name)

    def names(self) -> list[str]:
        return list(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get_dependencies(self, name: str) -> list[str]:
        """Direct dependencies of ``name`` (empty if unknown)."""
        node = self._nodes.get(name)
        return list(node.dependencies) if node else []

    def get_dependents(self, name: str) -> list[str]:
        """Plugins that directly depend on ``name``, in registration order."""
        return [n.name for n in self._nodes.values() if name in n.dependencies]

    def get_install_order(self, targets: Iterable[str]) -> list[str]:
        """Order ``targets`` and their transitive dependencies for install.

        Every plugin appears after all of its dependencies.

        Raises:
            CircularDependencyError: A cycle is reachable from a target.
            PluginNotFoundError: A reachable name was never registered.
        """
        collected: dict[str, None] = {}
        for target in targets:
            self._collect_dependencies(target, collected, set())
        return self._topological_sort(list(collected))

    def get_uninstall_order(self, targets: Iterable[str]) -> list[str]:
        """Order ``targets`` and their transitive dependents for removal.

        Dependents come before the plugins they depend on.

        Raises:
            CircularDependencyError: The dependents closure contains a cycle.
        """
        collected: dict[str, None] = {}
        for target in targets:
            self._collect_dependents(target, collected)
        order = self._topological_sort(list(collected))
        order.reverse()
        return order

    def validate_install(self, name: str, installed: Iterable[str]) -> None:
        """Check that every direct dependency of ``name`` is installed.

        Raises:
            PluginNotFoundError: ``name`` is not registered.
            UnmetDependencyError: Some direct dependencies are missing.
        """
        node = self._nodes.get(name)
        if node is None or node.is_placeholder:
            raise PluginNotFoundError(name)

        installed_set = set(installed)
        missing = [dep for dep in node.dependencies if dep not in installed_set]
        if missing:
            raise UnmetDependencyError(name, missing)

    def validate_uninstall(self, name: str, installed: Iterable[str]) -> None:
        """Check that no installed plugin directly depends on ``name``.

        Raises:
            BlockedByDependentsError: Installed dependents still need it.
        """
        if name not in self._nodes:
            return

        installed_set = set(installed)
        blockers = [d for d in self.get_dependents(name) if d in installed_set]
        if blockers:
            raise BlockedByDependentsError(name, blockers)

    def has_cycles(self) -> bool:
        """Scan the whole graph for a cycle, independent of any request."""
        color = {name: _WHITE for name in self._nodes}

        for root in self._nodes:
            if color[root] != _WHITE:
                continue

            color[root] = _GRAY
            stack = [(root, iter(self._nodes[root].dependencies))]
            while stack:
                name, deps = stack[-1]
                dep = next(deps, None)
                if dep is None:
                    color[name] = _BLACK
                    stack.pop()
                    continue
                state = color.get(dep, _BLACK)
                if state == _GRAY:
                    return True
                if state == _WHITE:
                    color[dep] = _GRAY
                    stack.append((dep, iter(self._nodes[dep].dependencies)))

        return False

    def _collect_dependencies(self, name: str, collected: dict[str, None], stack: set[str]) -> None:
        if name in collected:
            return
        if name in stack:
            raise CircularDependencyError(name)

        node = self._nodes.get(name)
        if node is None or node.is_placeholder:
            raise PluginNotFoundError(name)

        stack.add(name)
        for dep in node.dependencies:
            self._collect_dependencies(dep, collected, stack)
        stack.discard(name)
        collected[name] = None

    def _collect_dependents(self, name: str, collected: dict[str, None]) -> None:
        pending = [name]
        while pending:
            current = pending.pop(0)
            if current in collected:
                continue
            collected[current] = None
            pending.extend(self.get_dependents(current))

    def _topological_sort(self, names: list[str]) -> list[str]:
        """Kahn's algorithm over ``names``, counting only edges inside the set."""
        in_degree = {name: 0 for name in names}
        children: dict[str, list[str]] = {name: [] for name in names}

        for name in names:
            for dep in self.get_dependencies(name):
                if dep in in_degree:
                    in_degree[name] += 1
                    children[dep].append(name)

        queue = deque(name for name in names if in_degree[name] == 0)
        result: list[str] = []

        while queue:
            current = queue.popleft()
            result.append(current)
            for child in children[current]:
                in_degree[child] -= 1
                if in_degree[child] == 0:
                    queue.append(child)

        if len(result) != len(names):
            raise CircularDependencyError()

        return result
